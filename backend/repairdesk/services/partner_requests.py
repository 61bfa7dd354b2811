from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from repairdesk.constants.statuses import (
    PartnerStatus, TicketStatus, project_for_partner, canonical_statuses_for_partner, to_canonical, TICKET_FLOW,
)
from repairdesk.errors import NotFound, ValidationError
from repairdesk.models.partner_request import PartnerRequest
from repairdesk.utils.timestamps import utcnow, to_iso
from repairdesk.utils.validation import parse_number

logger = logging.getLogger(__name__)

REQUIRED_REQUEST_FIELDS = ('customerName', 'serialNumber', 'product', 'fault')
STATUS_FILTER_ALL = 'All'


def serialize(req: PartnerRequest) -> Dict[str, Any]:
    return {
        'id': req.request_id,
        'customerName': req.customer_name,
        'customerEmail': req.customer_email,
        'product': req.product,
        'serialNumber': req.serial_number,
        'fault': req.fault,
        'status': project_for_partner(req.status),
        'canonicalStatus': req.status,
        'estimatedCost': req.estimated_cost,
        'actualCost': req.actual_cost,
        'notes': req.notes,
        'lastUpdate': to_iso(req.updated_at),
        'createdAt': to_iso(req.created_at),
        'partnerId': req.partner_id,
    }


def next_request_id(db: Session, partner_id: str) -> str:
    prefix = f"REQ-{partner_id[:4].upper()}-"
    seq = db.execute(
        select(func.count(PartnerRequest.id)).where(PartnerRequest.partner_id == partner_id)
    ).scalar_one() + 1
    while True:
        candidate = f"{prefix}{seq:03d}"
        taken = db.execute(select(PartnerRequest.id).where(PartnerRequest.request_id == candidate)).first()
        if taken is None:
            return candidate
        seq += 1


def list_requests(db: Session, partner_id: str, status: Optional[str] = None) -> List[PartnerRequest]:
    stmt = select(PartnerRequest).where(PartnerRequest.partner_id == partner_id)
    if status and status != STATUS_FILTER_ALL:
        if status in PartnerStatus.values():
            stmt = stmt.where(PartnerRequest.status.in_(canonical_statuses_for_partner(status)))
        elif status in TICKET_FLOW:
            stmt = stmt.where(PartnerRequest.status == status)
        else:
            raise ValidationError(
                f"Invalid status filter. Must be one of: {', '.join([STATUS_FILTER_ALL] + PartnerStatus.values())}"
            )
    stmt = stmt.order_by(PartnerRequest.updated_at.desc(), PartnerRequest.id.desc())
    return list(db.execute(stmt).scalars().all())


def create_request(db: Session, partner_id: str, fields: Dict[str, Any]) -> PartnerRequest:
    missing = [f for f in REQUIRED_REQUEST_FIELDS if not str(fields.get(f) or '').strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    now = utcnow()
    req = PartnerRequest(
        request_id=next_request_id(db, partner_id),
        partner_id=partner_id,
        customer_name=fields['customerName'],
        customer_email=(fields.get('customerEmail') or None),
        product=fields['product'],
        serial_number=fields['serialNumber'],
        fault=fields['fault'],
        status=TicketStatus.NEW.value,
        estimated_cost=parse_number(fields.get('estimatedCost'), 'estimatedCost'),
        notes=fields.get('notes') or None,
        created_at=now,
        updated_at=now,
    )
    db.add(req)
    db.commit()
    logger.info(f"Partner request {req.request_id} created for partner {partner_id}")
    return req


def get_request(db: Session, partner_id: str, request_id: str) -> PartnerRequest:
    req = db.execute(
        select(PartnerRequest).where(
            PartnerRequest.partner_id == partner_id, PartnerRequest.request_id == request_id
        )
    ).scalar_one_or_none()
    if req is None:
        raise NotFound('Request not found')
    return req


def find_by_request_id(db: Session, request_id: str) -> Optional[PartnerRequest]:
    return db.execute(select(PartnerRequest).where(PartnerRequest.request_id == request_id)).scalar_one_or_none()


def update_request(db: Session, partner_id: str, request_id: str, fields: Dict[str, Any]) -> PartnerRequest:
    req = get_request(db, partner_id, request_id)
    if 'status' in fields and fields['status'] is not None:
        canonical = to_canonical(str(fields['status']))
        if canonical is None:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(PartnerStatus.values() + TICKET_FLOW)}"
            )
        req.status = canonical
    if 'estimatedCost' in fields:
        req.estimated_cost = parse_number(fields['estimatedCost'], 'estimatedCost')
    if 'actualCost' in fields:
        req.actual_cost = parse_number(fields['actualCost'], 'actualCost')
    if 'notes' in fields:
        req.notes = fields['notes'] or None
    req.updated_at = utcnow()
    db.commit()
    return req

__all__ = [
    'serialize', 'next_request_id', 'list_requests', 'create_request', 'get_request',
    'find_by_request_id', 'update_request', 'STATUS_FILTER_ALL',
]
