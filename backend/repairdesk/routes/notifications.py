from __future__ import annotations
import logging
import time
from flask import Blueprint, abort
from repairdesk import get_db
from repairdesk.constants.statuses import NotificationStage
from repairdesk.decorators.auth import require_permissions
from repairdesk.errors import NotFound
from repairdesk.services import partner_requests
from repairdesk.services.integrations import integrations
from repairdesk.services.notifications import stage_defaults
from repairdesk.utils.timestamps import utcnow, to_iso
from repairdesk.utils.validation import json_body, require_fields, validate_status

logger = logging.getLogger(__name__)

notify_bp = Blueprint('notifications', __name__)

TEST_DATA = {
    'amount': '1,500',
    'description': 'Screen replacement',
    'workDone': 'LCD display replaced and tested',
    'trackingNo': 'TEST123456',
    'courier': 'BlueDart',
    'trackingUrl': 'https://www.bluedart.com/tracking/TEST123456',
}


def _resolve_customer(request_id: str):
    """(customer, record-as-dict) from the ticket store by serial, else partner requests by id."""
    try:
        ticket = integrations().ticket_store.get(request_id)
    except NotFound:
        ticket = None
    if ticket is not None:
        return {'name': ticket.customer_name, 'email': ticket.customer_email}, ticket.to_json()
    req = partner_requests.find_by_request_id(get_db(), request_id)
    if req is not None:
        return {'name': req.customer_name, 'email': req.customer_email}, partner_requests.serialize(req)
    abort(404, description='Customer not found for the given requestId')


@notify_bp.post('/update-status')
@require_permissions('NOTIFY.SEND')
def update_status():
    data = json_body()
    require_fields(data, ['requestId', 'newStatus'])
    request_id = data['requestId']
    stage = validate_status(data['newStatus'], NotificationStage.values(), 'status')
    extra = data.get('extraData') or {}
    if not isinstance(extra, dict):
        abort(400, description='extraData must be an object')

    customer, record = _resolve_customer(request_id)
    notification_data = stage_defaults(stage, request_id, record)
    notification_data.update(extra)
    integrations().notifier.send(customer, stage, notification_data)

    logger.info(f"Status notification sent: {request_id} -> {stage}")
    return {
        'success': True,
        'message': f'Status updated to {stage} and notifications sent',
        'requestId': request_id,
        'newStatus': stage,
        'customer': {'name': customer['name'], 'email': customer['email']},
        'notificationData': notification_data,
    }


@notify_bp.post('/test-notification')
@require_permissions('NOTIFY.SEND')
def test_notification():
    data = json_body()
    stage = data.get('stage') or NotificationStage.CREATED.value
    customer = {
        'name': data.get('customerName') or 'Test Customer',
        'email': data.get('customerEmail') or 'test@example.com',
        'phone': data.get('customerPhone') or '+91-9999999999',
    }
    test_data = dict(TEST_DATA)
    test_data['id'] = f"TEST-{int(time.time() * 1000)}"
    test_data['expectedDelivery'] = stage_defaults(NotificationStage.DISPATCHED.value, '')['expectedDelivery']
    extra = data.get('extraData') or {}
    if isinstance(extra, dict):
        test_data.update(extra)

    integrations().notifier.send(customer, stage, test_data)
    return {'success': True, 'message': 'Test notification sent successfully', 'testCustomer': customer, 'stage': stage}


@notify_bp.get('/test-email-config')
@require_permissions('NOTIFY.SEND')
def test_email_config():
    ok = integrations().mailer.verify()
    return {
        'success': ok,
        'message': 'Email configuration is valid' if ok else 'Email configuration has issues',
        'timestamp': to_iso(utcnow()),
    }
