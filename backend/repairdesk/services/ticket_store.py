"""Service-request (ticket) storage and status workflow.

Tickets are keyed by device serial number. At most one *open* ticket exists
per serial; once closed, a new ticket may be opened for the same device.
Two backends share the workflow rules defined on ``TicketStore``:

* ``SqlTicketStore``   - ``service_tickets`` table, indexed serial lookup,
  compare-and-set on ``updated_at``.
* ``SheetsTicketStore`` (sheets_store.py) - one spreadsheet row per ticket.

``updated_at`` doubles as the optimistic version token: callers may pass the
value they last saw and the update is rejected with Conflict if it moved.
"""
from __future__ import annotations
import logging
import threading
from datetime import timedelta
from dataclasses import dataclass, field, replace
from typing import BinaryIO, Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, update

from repairdesk.constants.statuses import TicketStatus, TICKET_FLOW, project_for_partner
from repairdesk.errors import Conflict, NotFound, ValidationError
from repairdesk.models.ticket import ServiceTicket
from repairdesk.utils.fsm import TransitionValidator
from repairdesk.utils.timestamps import utcnow, to_iso, parse_iso

logger = logging.getLogger(__name__)

PHOTO_SEPARATOR = '; '
REQUIRED_TICKET_FIELDS = ('customerName', 'serialNumber', 'productDetails', 'purchaseDate', 'faultDescription')

# request key -> Ticket attribute
UPDATABLE_FIELDS = {
    'status': 'status',
    'assignedTo': 'assigned_to',
    'estimatedCost': 'estimated_cost',
    'dispatchDetails': 'dispatch_details',
    'repairDetails': 'repair_details',
}


def split_photos(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [p.strip() for p in raw.split(';') if p.strip()]


def join_photos(urls: Iterable[str]) -> str:
    return PHOTO_SEPARATOR.join(urls)


def as_cell(value) -> str:
    return '' if value is None else str(value)


@dataclass
class Ticket:
    id: str
    customer_name: str
    serial_number: str
    product_details: str
    purchase_date: str
    fault_description: str
    status: str = TicketStatus.NEW.value
    photos: List[str] = field(default_factory=list)
    assigned_to: str = ''
    estimated_cost: str = ''
    dispatch_details: str = ''
    repair_details: str = ''
    customer_email: str = ''
    created_at: str = ''
    updated_at: str = ''

    @property
    def version(self) -> str:
        return self.updated_at

    @property
    def is_open(self) -> bool:
        return self.status != TicketStatus.CLOSED.value

    def to_json(self) -> dict:
        return {
            'id': self.id,
            'ticketNumber': self.serial_number,
            'customerName': self.customer_name,
            'customerEmail': self.customer_email,
            'serialNumber': self.serial_number,
            'productDetails': self.product_details,
            'productType': self.product_details,
            'purchaseDate': self.purchase_date,
            'photos': list(self.photos),
            'faultDescription': self.fault_description,
            'issue': self.fault_description,
            'priority': 'medium',
            'status': self.status,
            'partnerStatus': project_for_partner(self.status),
            'assignedTo': self.assigned_to,
            'estimatedCost': self.estimated_cost,
            'dispatchDetails': self.dispatch_details,
            'repairDetails': self.repair_details,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
            'version': self.version,
        }


class TicketStore:
    """Backend-independent workflow; subclasses provide row access."""

    def __init__(self, enforce_transitions: bool = False):
        self.transitions = TransitionValidator.forward_only(TICKET_FLOW) if enforce_transitions else None
        # single writer per process for every read-modify-write
        self._write_lock = threading.RLock()

    # --- backend hooks ---
    def _all(self) -> List[Ticket]:
        raise NotImplementedError

    def _find(self, serial_number: str) -> Optional[Ticket]:
        """Open ticket for the serial if any, else the most recent one."""
        raise NotImplementedError

    def _insert(self, ticket: Ticket) -> Ticket:
        raise NotImplementedError

    def _save(self, ticket: Ticket, previous_version: str) -> Ticket:
        raise NotImplementedError

    # --- operations ---
    def create(self, fields: Dict[str, object]) -> Ticket:
        missing = [f for f in REQUIRED_TICKET_FIELDS if not as_cell(fields.get(f)).strip()]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        serial = as_cell(fields['serialNumber']).strip()
        photos = fields.get('photos') or []
        if isinstance(photos, str):
            photos = split_photos(photos)
        now = to_iso(utcnow())
        ticket = Ticket(
            id='',
            customer_name=as_cell(fields['customerName']),
            customer_email=as_cell(fields.get('customerEmail')).lower(),
            serial_number=serial,
            product_details=as_cell(fields['productDetails']),
            purchase_date=as_cell(fields['purchaseDate']),
            photos=[as_cell(p) for p in photos],
            fault_description=as_cell(fields['faultDescription']),
            status=TicketStatus.NEW.value,
            estimated_cost=as_cell(fields.get('estimatedCost')),
            created_at=now,
            updated_at=now,
        )
        with self._write_lock:
            existing = self._find(serial)
            if existing is not None and existing.is_open:
                raise Conflict(f'An open service request already exists for serial number {serial}')
            created = self._insert(ticket)
        logger.info(f"Service request created for serial {serial}")
        return created

    def list(self, status: Optional[str] = None) -> List[Ticket]:
        if status and status not in TICKET_FLOW:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(TICKET_FLOW)}")
        tickets = self._all()
        if status:
            tickets = [t for t in tickets if t.status == status]
        return tickets

    def get(self, serial_number: str) -> Ticket:
        ticket = self._find(serial_number)
        if ticket is None:
            raise NotFound('Service request not found')
        return ticket

    def update(self, serial_number: str, changes: Dict[str, object],
               expected_version: Optional[str] = None) -> Tuple[Ticket, str]:
        """Overwrite the provided fields; returns (ticket, previous status)."""
        status = changes.get('status')
        # an explicit null or blank status is rejected like any unknown one
        if 'status' in changes and status not in TICKET_FLOW:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(TICKET_FLOW)}")
        with self._write_lock:
            current = self.get(serial_number)
            if expected_version and expected_version != current.version:
                raise Conflict('Service request was modified by another user; reload and retry')
            if 'status' in changes and self.transitions is not None:
                self.transitions.assert_can_transition(current.status, str(status))
            values = {attr: as_cell(changes[key]) for key, attr in UPDATABLE_FIELDS.items() if key in changes}
            values['updated_at'] = self._next_version(current.version)
            updated = self._save(replace(current, **values), current.version)
        return updated, current.status

    def attach_photos(self, serial_number: str, files: List[Tuple[BinaryIO, str]],
                      upload: Callable[[BinaryIO, str], str]) -> Tuple[Ticket, List[str]]:
        """Upload each file and append the URLs, keeping earlier photos."""
        self.get(serial_number)  # 404 before any upload
        urls = [upload(stream, filename) for stream, filename in files]
        with self._write_lock:
            current = self.get(serial_number)
            updated = self._save(
                replace(current, photos=current.photos + urls, updated_at=self._next_version(current.version)),
                current.version,
            )
        return updated, urls

    @staticmethod
    def _next_version(previous: str) -> str:
        now = to_iso(utcnow())
        # clocks can repeat a microsecond; the token must still change
        if now <= (previous or ''):
            prev = parse_iso(previous)
            if prev is not None:
                now = to_iso(prev + timedelta(microseconds=1))
        return now


class SqlTicketStore(TicketStore):
    def __init__(self, session_factory: Callable, enforce_transitions: bool = False):
        super().__init__(enforce_transitions)
        self.session_factory = session_factory

    @staticmethod
    def _to_ticket(row) -> Ticket:
        return Ticket(
            id=str(row.id),
            customer_name=row.customer_name,
            customer_email=row.customer_email or '',
            serial_number=row.serial_number,
            product_details=row.product_details,
            purchase_date=row.purchase_date,
            photos=split_photos(row.photos),
            fault_description=row.fault_description,
            status=row.status,
            assigned_to=row.assigned_to or '',
            estimated_cost=row.estimated_cost or '',
            dispatch_details=row.dispatch_details or '',
            repair_details=row.repair_details or '',
            created_at=to_iso(row.created_at) or '',
            updated_at=to_iso(row.updated_at) or '',
        )

    def _all(self) -> List[Ticket]:
        session = self.session_factory()
        rows = session.execute(
            select(ServiceTicket).order_by(ServiceTicket.id.asc()).execution_options(populate_existing=True)
        ).scalars().all()
        return [self._to_ticket(r) for r in rows]

    def _find(self, serial_number: str) -> Optional[Ticket]:
        session = self.session_factory()
        rows = session.execute(
            select(ServiceTicket)
            .where(ServiceTicket.serial_number == serial_number)
            .order_by(ServiceTicket.id.desc())
            .execution_options(populate_existing=True)
        ).scalars().all()
        if not rows:
            return None
        for row in rows:
            if row.status != TicketStatus.CLOSED.value:
                return self._to_ticket(row)
        return self._to_ticket(rows[0])

    def _insert(self, ticket: Ticket) -> Ticket:
        session = self.session_factory()
        row = ServiceTicket(
            customer_name=ticket.customer_name,
            customer_email=ticket.customer_email or None,
            serial_number=ticket.serial_number,
            product_details=ticket.product_details,
            purchase_date=ticket.purchase_date,
            photos=join_photos(ticket.photos),
            fault_description=ticket.fault_description,
            status=ticket.status,
            assigned_to=ticket.assigned_to,
            estimated_cost=ticket.estimated_cost,
            dispatch_details=ticket.dispatch_details,
            repair_details=ticket.repair_details,
            created_at=parse_iso(ticket.created_at),
            updated_at=parse_iso(ticket.updated_at),
        )
        session.add(row)
        session.commit()
        return self._to_ticket(row)

    def _save(self, ticket: Ticket, previous_version: str) -> Ticket:
        session = self.session_factory()
        result = session.execute(
            update(ServiceTicket)
            .where(ServiceTicket.id == int(ticket.id), ServiceTicket.updated_at == parse_iso(previous_version))
            .values(
                status=ticket.status,
                assigned_to=ticket.assigned_to,
                estimated_cost=ticket.estimated_cost,
                dispatch_details=ticket.dispatch_details,
                repair_details=ticket.repair_details,
                photos=join_photos(ticket.photos),
                updated_at=parse_iso(ticket.updated_at),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            session.rollback()
            raise Conflict('Service request was modified by another user; reload and retry')
        session.commit()
        return ticket

__all__ = [
    'Ticket', 'TicketStore', 'SqlTicketStore', 'PHOTO_SEPARATOR', 'REQUIRED_TICKET_FIELDS',
    'UPDATABLE_FIELDS', 'split_photos', 'join_photos', 'as_cell',
]
