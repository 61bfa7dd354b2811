from __future__ import annotations
import logging
from flask import Blueprint, request, abort, current_app
from flask_jwt_extended import get_current_user, get_jwt
from repairdesk.constants.statuses import NotificationStage, STAGE_FOR_STATUS
from repairdesk.decorators.auth import require_permissions
from repairdesk.services.integrations import integrations
from repairdesk.services.notifications import stage_defaults
from repairdesk.services.ticket_store import UPDATABLE_FIELDS, REQUIRED_TICKET_FIELDS
from repairdesk.utils.validation import json_body, require_fields

logger = logging.getLogger(__name__)

sr_bp = Blueprint('service_requests', __name__)


def _caller_contact():
    user = get_current_user()
    if user is not None:
        return user.email, user.phone
    return get_jwt().get('email'), None


@sr_bp.post('')
@require_permissions('TICKET.CREATE')
def create_service_request():
    data = json_body()
    require_fields(data, REQUIRED_TICKET_FIELDS)
    ext = integrations()
    ticket = ext.ticket_store.create(data)

    email, phone = _caller_contact()
    customer = {
        'name': ticket.customer_name,
        'email': ticket.customer_email or email,
        'phone': phone,
    }
    sent = ext.notifier.send_best_effort(customer, NotificationStage.CREATED.value, {'id': ticket.serial_number})
    message = 'Service request created successfully'
    if sent:
        message += ' and notification sent'
    return {'success': True, 'message': message, 'requestId': ticket.serial_number}, 201


@sr_bp.get('')
@require_permissions('TICKET.READ')
def list_service_requests():
    tickets = integrations().ticket_store.list(request.args.get('status') or None)
    return {'success': True, 'tickets': [t.to_json() for t in tickets], 'total': len(tickets)}


@sr_bp.patch('/<serial_number>')
@require_permissions('TICKET.UPDATE')
def update_service_request(serial_number):
    data = json_body()
    changes = {k: data[k] for k in UPDATABLE_FIELDS if k in data}
    if not changes:
        abort(400, description=f"No updatable fields provided. Allowed: {', '.join(UPDATABLE_FIELDS)}")
    expected_version = data.get('version') or request.headers.get('If-Match')
    if expected_version:
        expected_version = expected_version.strip('"')

    ext = integrations()
    ticket, previous_status = ext.ticket_store.update(serial_number, changes, expected_version=expected_version)

    stage = STAGE_FOR_STATUS.get(ticket.status)
    if stage and ticket.status != previous_status:
        customer = {'name': ticket.customer_name, 'email': ticket.customer_email}
        ext.notifier.send_best_effort(customer, stage, stage_defaults(stage, ticket.serial_number, ticket.to_json()))

    return {
        'success': True,
        'message': 'Service request updated successfully',
        'ticketNumber': ticket.serial_number,
        'ticket': ticket.to_json(),
    }


@sr_bp.post('/upload-photos/<serial_number>')
@require_permissions('TICKET.PHOTOS')
def upload_photos(serial_number):
    files = [f for f in request.files.getlist('photos') if f and f.filename]
    if not files:
        abort(400, description='No photos uploaded')
    limit = current_app.config.get('MAX_PHOTOS_PER_UPLOAD', 10)
    if len(files) > limit:
        abort(400, description=f'Too many photos. Maximum {limit} per upload')

    ext = integrations()
    ticket, urls = ext.ticket_store.attach_photos(
        serial_number,
        [(f.stream, f.filename) for f in files],
        ext.photo_storage.upload,
    )
    logger.info(f"Uploaded {len(urls)} photos for service request {serial_number}")
    return {
        'success': True,
        'message': f'{len(urls)} photos uploaded successfully',
        'photoUrls': urls,
        'totalPhotos': len(ticket.photos),
    }
