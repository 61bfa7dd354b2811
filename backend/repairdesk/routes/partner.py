from __future__ import annotations
from flask import Blueprint, request
from flask_jwt_extended import get_current_user
from repairdesk import get_db
from repairdesk.constants.statuses import NotificationStage
from repairdesk.decorators.auth import require_permissions
from repairdesk.services import partner_requests
from repairdesk.services.integrations import integrations
from repairdesk.utils.validation import json_body, require_fields

partner_bp = Blueprint('partner', __name__)


@partner_bp.get('/<partner_id>/requests')
@require_permissions('PARTNER.READ')
def list_requests(partner_id):
    rows = partner_requests.list_requests(get_db(), partner_id, request.args.get('status'))
    data = [partner_requests.serialize(r) for r in rows]
    return {'success': True, 'requests': data, 'total': len(data)}


@partner_bp.post('/<partner_id>/requests')
@require_permissions('PARTNER.CREATE')
def create_request(partner_id):
    data = json_body()
    require_fields(data, partner_requests.REQUIRED_REQUEST_FIELDS)
    req = partner_requests.create_request(get_db(), partner_id, data)

    user = get_current_user()
    customer = {
        'name': req.customer_name,
        'email': req.customer_email or (user.email if user is not None else None),
        'phone': user.phone if user is not None else None,
    }
    integrations().notifier.send_best_effort(customer, NotificationStage.CREATED.value, {'id': req.request_id})
    return {'success': True, 'message': 'Request created successfully', 'request': partner_requests.serialize(req)}, 201


@partner_bp.patch('/<partner_id>/requests/<request_id>')
@require_permissions('PARTNER.UPDATE')
def update_request(partner_id, request_id):
    data = json_body()
    req = partner_requests.update_request(get_db(), partner_id, request_id, data)
    return {'success': True, 'message': 'Request updated successfully', 'request': partner_requests.serialize(req)}
