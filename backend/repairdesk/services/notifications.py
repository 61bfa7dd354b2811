"""Stage notifications for repair customers.

Each lifecycle stage has an email subject, an HTML body and a short SMS text.
Email goes out through the injected ``Mailer``; SMS/WhatsApp is only logged,
no provider is wired in.
"""
import logging
import re
import time
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Optional

from repairdesk.constants.statuses import NotificationStage
from repairdesk.errors import ValidationError

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r'\{(\w+)\}')

_HEADER = (
    '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; '
    'border: 1px solid #ddd; border-radius: 8px;">'
    '<div style="background-color: #f8f9fa; padding: 20px; text-align: center;">'
    '<h2 style="color: #007bff; margin: 0;">TechRepair Service</h2></div>'
    '<div style="padding: 20px;">'
)
_FOOTER = (
    '<p style="margin-top: 20px;">Best regards,<br><strong>TechRepair Team</strong></p></div>'
    '<div style="background-color: #f8f9fa; padding: 10px; text-align: center; font-size: 12px; color: #6c757d;">'
    'Questions? Contact us at support@techrepair.com</div></div>'
)


@dataclass(frozen=True)
class StageTemplate:
    subject: str
    email: str
    sms: str


TEMPLATES: Dict[str, StageTemplate] = {
    NotificationStage.CREATED.value: StageTemplate(
        subject='Service Request Registered - #{id}',
        email=_HEADER + (
            '<h3 style="color: #28a745;">Service Request Registered</h3>'
            '<p>Hi <strong>{name}</strong>,</p>'
            '<p>Your service request <strong>#{id}</strong> has been registered with our repair center.</p>'
            '<p><strong>Status:</strong> Under Review</p>'
            '<p>Our technicians will assess your device and send a cost estimate soon.</p>'
        ) + _FOOTER,
        sms="Hi {name}, your service request #{id} has been registered. You'll receive updates as the repair progresses.",
    ),
    NotificationStage.COST_ESTIMATE.value: StageTemplate(
        subject='Repair Cost Estimate - #{id}',
        email=_HEADER + (
            '<h3 style="color: #ffc107;">Cost Estimate Ready</h3>'
            '<p>Hi <strong>{name}</strong>,</p>'
            '<p>We have assessed your device for request <strong>#{id}</strong>.</p>'
            '<p style="font-size: 24px; font-weight: bold;">&#8377;{amount}</p>'
            '<p><strong>Breakdown:</strong> {description}</p>'
            '<p><strong>Please approve this estimate to proceed with the repair.</strong></p>'
        ) + _FOOTER,
        sms='Hi {name}, estimated repair cost for request #{id} is Rs.{amount}. Please approve to proceed. {description}',
    ),
    NotificationStage.REPAIRED.value: StageTemplate(
        subject='Device Repaired - #{id}',
        email=_HEADER + (
            '<h3 style="color: #28a745;">Device Repaired</h3>'
            '<p>Hi <strong>{name}</strong>,</p>'
            '<p>Your device for request <strong>#{id}</strong> has been repaired and tested.</p>'
            '<p><strong>Work Done:</strong> {workDone}</p>'
            '<p><strong>Status:</strong> Ready for Dispatch</p>'
        ) + _FOOTER,
        sms='Hi {name}, your device for request #{id} is repaired and ready for dispatch. Work done: {workDone}',
    ),
    NotificationStage.DISPATCHED.value: StageTemplate(
        subject='Device Shipped - #{id}',
        email=_HEADER + (
            '<h3 style="color: #17a2b8;">Device Shipped</h3>'
            '<p>Hi <strong>{name}</strong>,</p>'
            '<p>Your repaired device for request <strong>#{id}</strong> is on its way.</p>'
            '<p><strong>Tracking ID:</strong> {trackingNo}</p>'
            '<p><strong>Courier:</strong> {courier}</p>'
            '<p><strong>Expected Delivery:</strong> {expectedDelivery}</p>'
            '<p><a href="{trackingUrl}">Track Package</a></p>'
        ) + _FOOTER,
        sms='Hi {name}, your device for request #{id} has been shipped. Tracking ID: {trackingNo}. Expected delivery: {expectedDelivery}',
    ),
}


def render(template: str, data: Dict[str, Any]) -> str:
    """Substitute ``{key}`` placeholders; anything unresolved becomes ''."""
    def _sub(match):
        value = data.get(match.group(1))
        return '' if value is None else str(value)
    return PLACEHOLDER_RE.sub(_sub, template)


def stage_defaults(stage: str, request_id: str, ticket: Optional[Dict[str, Any]] = None,
                   today: Optional[date] = None) -> Dict[str, Any]:
    """Fallback template values for a stage, taken from the ticket where it has them."""
    ticket = ticket or {}
    today = today or date.today()
    data: Dict[str, Any] = {'id': request_id}
    if stage == NotificationStage.COST_ESTIMATE.value:
        data['amount'] = ticket.get('estimatedCost') or ''
        data['description'] = 'Parts replacement and labor charges'
    elif stage == NotificationStage.REPAIRED.value:
        data['workDone'] = ticket.get('repairDetails') or 'Component replacement and testing completed'
    elif stage == NotificationStage.DISPATCHED.value:
        tracking_no = ticket.get('dispatchDetails') or f"TRP{int(time.time() * 1000)}"
        data['trackingNo'] = tracking_no
        data['courier'] = 'BlueDart'
        data['expectedDelivery'] = (today + timedelta(days=2)).isoformat()
        data['trackingUrl'] = f"https://www.bluedart.com/tracking/{tracking_no}"
    return data


class NotificationDispatcher:
    def __init__(self, mailer):
        self.mailer = mailer

    def send(self, customer: Dict[str, Any], stage: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Email the customer for ``stage`` and log the SMS/WhatsApp text.

        Raises ValidationError before sending anything when the customer or
        stage is unusable; transport failures surface as DeliveryError.
        """
        if not customer or not customer.get('name') or not customer.get('email'):
            raise ValidationError('Customer information is incomplete (name and email required)')
        template = TEMPLATES.get(stage)
        if template is None:
            raise ValidationError(f"Invalid stage: {stage}. Valid stages: {', '.join(NotificationStage.values())}")

        template_data = {'name': customer['name']}
        template_data.update(data or {})

        subject = render(template.subject, template_data)
        body = render(template.email, template_data)
        self.mailer.send(customer['email'], subject, body)

        phone = customer.get('phone')
        if phone:
            logger.info(f"[SMS/WhatsApp] to {phone}: {render(template.sms, template_data)}")
        else:
            logger.info('No phone number provided for SMS/WhatsApp notification')

        logger.info(f"Notification sent to {customer['name']} ({customer['email']}) for stage: {stage}")
        return {'success': True, 'stage': stage, 'customer': customer['email']}

    def send_best_effort(self, customer: Dict[str, Any], stage: str, data: Optional[Dict[str, Any]] = None) -> bool:
        """Side-effect variant: never raises, returns whether the email went out."""
        try:
            self.send(customer, stage, data)
        except Exception as e:  # side effect must not fail the primary operation
            logger.warning(f"Failed to send {stage} notification: {e}")
            return False
        return True
