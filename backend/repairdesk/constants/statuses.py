"""Ticket lifecycle vocabulary.

One canonical status set drives every ticket surface. The partner surface
shows a coarse projection of it via ``PARTNER_PROJECTION``; nothing stores the
partner words.
"""
from __future__ import annotations
from enum import Enum
from typing import Dict, List, Optional


class TicketStatus(str, Enum):
    NEW = 'new'
    VALIDATION = 'validation'
    AWAITING_DISPATCH = 'awaiting_dispatch'
    ASSIGNED_EPR = 'assigned_epr'
    ESTIMATE_PROVIDED = 'estimate_provided'
    UNDER_REPAIR = 'under_repair'
    READY_RETURN = 'ready_return'
    CLOSED = 'closed'

    @classmethod
    def values(cls) -> List[str]:
        return [s.value for s in cls]


# lifecycle order, oldest first
TICKET_FLOW = TicketStatus.values()
OPEN_TICKET_STATUSES = tuple(s for s in TICKET_FLOW if s != TicketStatus.CLOSED.value)


class PartnerStatus(str, Enum):
    PENDING = 'Pending'
    APPROVED = 'Approved'
    REPAIRED = 'Repaired'
    DISPATCHED = 'Dispatched'

    @classmethod
    def values(cls) -> List[str]:
        return [s.value for s in cls]


PARTNER_PROJECTION: Dict[str, str] = {
    TicketStatus.NEW.value: PartnerStatus.PENDING.value,
    TicketStatus.VALIDATION.value: PartnerStatus.PENDING.value,
    TicketStatus.AWAITING_DISPATCH.value: PartnerStatus.PENDING.value,
    TicketStatus.ASSIGNED_EPR.value: PartnerStatus.PENDING.value,
    TicketStatus.ESTIMATE_PROVIDED.value: PartnerStatus.PENDING.value,
    TicketStatus.UNDER_REPAIR.value: PartnerStatus.APPROVED.value,
    TicketStatus.READY_RETURN.value: PartnerStatus.REPAIRED.value,
    TicketStatus.CLOSED.value: PartnerStatus.DISPATCHED.value,
}

PARTNER_TO_CANONICAL: Dict[str, str] = {
    PartnerStatus.PENDING.value: TicketStatus.NEW.value,
    PartnerStatus.APPROVED.value: TicketStatus.UNDER_REPAIR.value,
    PartnerStatus.REPAIRED.value: TicketStatus.READY_RETURN.value,
    PartnerStatus.DISPATCHED.value: TicketStatus.CLOSED.value,
}


def project_for_partner(status: str) -> str:
    return PARTNER_PROJECTION.get(status, PartnerStatus.PENDING.value)


def canonical_statuses_for_partner(partner_status: str) -> List[str]:
    """All canonical statuses shown to partners as ``partner_status``."""
    return [c for c, p in PARTNER_PROJECTION.items() if p == partner_status]


def to_canonical(status: str) -> Optional[str]:
    """Accept either vocabulary; None when the value belongs to neither."""
    if status in PARTNER_TO_CANONICAL:
        return PARTNER_TO_CANONICAL[status]
    if status in TICKET_FLOW:
        return status
    return None


class NotificationStage(str, Enum):
    CREATED = 'Created'
    COST_ESTIMATE = 'CostEstimate'
    REPAIRED = 'Repaired'
    DISPATCHED = 'Dispatched'

    @classmethod
    def values(cls) -> List[str]:
        return [s.value for s in cls]


# status changes that notify the customer
STAGE_FOR_STATUS: Dict[str, str] = {
    TicketStatus.ESTIMATE_PROVIDED.value: NotificationStage.COST_ESTIMATE.value,
    TicketStatus.READY_RETURN.value: NotificationStage.REPAIRED.value,
    TicketStatus.CLOSED.value: NotificationStage.DISPATCHED.value,
}

DEVICE_STATUSES = ('Operational', 'Faulty', 'Under Repair', 'Replaced', 'Decommissioned')
FAULT_STATUSES = ('Open', 'In Progress', 'Resolved')
PROJECT_STATUSES = ('Active', 'Completed', 'On Hold', 'Cancelled')

__all__ = [
    'TicketStatus', 'TICKET_FLOW', 'OPEN_TICKET_STATUSES', 'PartnerStatus', 'PARTNER_PROJECTION',
    'PARTNER_TO_CANONICAL', 'project_for_partner', 'canonical_statuses_for_partner', 'to_canonical',
    'NotificationStage', 'STAGE_FOR_STATUS', 'DEVICE_STATUSES', 'FAULT_STATUSES', 'PROJECT_STATUSES',
]
