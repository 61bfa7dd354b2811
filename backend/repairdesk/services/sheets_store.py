"""Google Sheets backend for service requests.

One row per ticket on ``<tab>!A2:N``; row 1 is the header. Column order:

    A customerName     B serialNumber   C productDetails  D purchaseDate
    E photos ("; ")    F faultDescription  G status       H assignedTo
    I estimatedCost    J dispatchDetails   K repairDetails L createdAt
    M updatedAt        N customerEmail

Lookups go through a serial -> row cache. A cached row is re-read and its
serial compared before use, so rows shifted by hand in the sheet only cost
a rescan.
"""
from __future__ import annotations
import logging
import os
import re
from typing import Any, Dict, List, Optional

from repairdesk.constants.statuses import TicketStatus
from repairdesk.errors import Conflict, InternalError
from repairdesk.services.ticket_store import Ticket, TicketStore, split_photos, join_photos, as_cell

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ['https://www.googleapis.com/auth/spreadsheets']
COLUMNS = (
    'customerName', 'serialNumber', 'productDetails', 'purchaseDate', 'photos', 'faultDescription',
    'status', 'assignedTo', 'estimatedCost', 'dispatchDetails', 'repairDetails', 'createdAt',
    'updatedAt', 'customerEmail',
)
FIRST_DATA_ROW = 2
_ROW_IN_RANGE = re.compile(r'![A-Z]+(\d+)')


def build_sheets_service(credentials_file: str):
    """Authenticated Sheets v4 client from a service-account key file."""
    if not credentials_file or not os.path.exists(credentials_file):
        raise RuntimeError(f"Google service account credentials not found at {credentials_file}")
    from google.oauth2 import service_account
    from googleapiclient.discovery import build

    creds = service_account.Credentials.from_service_account_file(credentials_file, scopes=SHEETS_SCOPES)
    return build('sheets', 'v4', credentials=creds, cache_discovery=False)


def row_to_ticket(row: List[Any], row_number: int) -> Ticket:
    cells = [as_cell(v) for v in row] + [''] * (len(COLUMNS) - len(row))
    return Ticket(
        id=str(row_number),
        customer_name=cells[0],
        serial_number=cells[1],
        product_details=cells[2],
        purchase_date=cells[3],
        photos=split_photos(cells[4]),
        fault_description=cells[5],
        status=cells[6] or TicketStatus.NEW.value,
        assigned_to=cells[7],
        estimated_cost=cells[8],
        dispatch_details=cells[9],
        repair_details=cells[10],
        created_at=cells[11],
        updated_at=cells[12],
        customer_email=cells[13],
    )


def ticket_to_row(ticket: Ticket) -> List[str]:
    return [
        ticket.customer_name,
        ticket.serial_number,
        ticket.product_details,
        ticket.purchase_date,
        join_photos(ticket.photos),
        ticket.fault_description,
        ticket.status,
        ticket.assigned_to,
        ticket.estimated_cost,
        ticket.dispatch_details,
        ticket.repair_details,
        ticket.created_at,
        ticket.updated_at,
        ticket.customer_email,
    ]


class SheetsTicketStore(TicketStore):
    def __init__(self, service, spreadsheet_id: str, tab: str = 'ServiceRequests',
                 enforce_transitions: bool = False):
        super().__init__(enforce_transitions)
        if not spreadsheet_id:
            raise RuntimeError('SPREADSHEET_ID is required for the sheets ticket store')
        self.service = service
        self.spreadsheet_id = spreadsheet_id
        self.tab = tab
        self._row_index: Dict[str, int] = {}

    @property
    def _values(self):
        return self.service.spreadsheets().values()

    def _range(self, first: int, last: Optional[int] = None) -> str:
        return f"{self.tab}!A{first}:N{'' if last is None else last}"

    def _read_rows(self) -> List[List[Any]]:
        try:
            resp = self._values.get(spreadsheetId=self.spreadsheet_id, range=self._range(FIRST_DATA_ROW)).execute()
        except Exception as e:
            logger.error(f"Error reading service requests from sheet: {e}")
            raise InternalError('Failed to read service requests') from e
        return resp.get('values', [])

    def _read_row(self, row_number: int) -> Optional[List[Any]]:
        try:
            resp = self._values.get(
                spreadsheetId=self.spreadsheet_id, range=self._range(row_number, row_number)
            ).execute()
        except Exception as e:
            logger.error(f"Error reading sheet row {row_number}: {e}")
            raise InternalError('Failed to read service request') from e
        values = resp.get('values', [])
        return values[0] if values else None

    def _reindex(self, rows: List[List[Any]]) -> None:
        index: Dict[str, int] = {}
        open_rows: Dict[str, int] = {}
        for offset, row in enumerate(rows):
            ticket = row_to_ticket(row, FIRST_DATA_ROW + offset)
            if not ticket.serial_number:
                continue
            index[ticket.serial_number] = FIRST_DATA_ROW + offset
            if ticket.is_open:
                open_rows[ticket.serial_number] = FIRST_DATA_ROW + offset
        index.update(open_rows)
        self._row_index = index

    def _all(self) -> List[Ticket]:
        rows = self._read_rows()
        self._reindex(rows)
        return [row_to_ticket(row, FIRST_DATA_ROW + i) for i, row in enumerate(rows) if any(row)]

    def _find(self, serial_number: str) -> Optional[Ticket]:
        cached = self._row_index.get(serial_number)
        if cached is not None:
            row = self._read_row(cached)
            if row is not None:
                ticket = row_to_ticket(row, cached)
                # a closed hit may hide a newer ticket appended elsewhere
                if ticket.serial_number == serial_number and ticket.is_open:
                    return ticket
        self._reindex(self._read_rows())
        row_number = self._row_index.get(serial_number)
        if row_number is None:
            return None
        row = self._read_row(row_number)
        return row_to_ticket(row, row_number) if row is not None else None

    def _insert(self, ticket: Ticket) -> Ticket:
        try:
            resp = self._values.append(
                spreadsheetId=self.spreadsheet_id,
                range=f"{self.tab}!A:N",
                valueInputOption='RAW',
                insertDataOption='INSERT_ROWS',
                body={'values': [ticket_to_row(ticket)]},
            ).execute()
        except Exception as e:
            logger.error(f"Error appending service request to sheet: {e}")
            raise InternalError('Failed to create service request') from e
        match = _ROW_IN_RANGE.search(resp.get('updates', {}).get('updatedRange', ''))
        if match:
            row_number = int(match.group(1))
            self._row_index[ticket.serial_number] = row_number
            ticket.id = str(row_number)
        else:
            self._row_index.pop(ticket.serial_number, None)
        return ticket

    def _save(self, ticket: Ticket, previous_version: str) -> Ticket:
        row_number = int(ticket.id)
        current = self._read_row(row_number)
        if current is None or row_to_ticket(current, row_number).updated_at != previous_version:
            self._row_index.pop(ticket.serial_number, None)
            raise Conflict('Service request was modified by another user; reload and retry')
        try:
            self._values.update(
                spreadsheetId=self.spreadsheet_id,
                range=self._range(row_number, row_number),
                valueInputOption='RAW',
                body={'values': [ticket_to_row(ticket)]},
            ).execute()
        except Exception as e:
            logger.error(f"Error updating service request row {row_number}: {e}")
            raise InternalError('Failed to update service request') from e
        return ticket

__all__ = ['SheetsTicketStore', 'build_sheets_service', 'row_to_ticket', 'ticket_to_row', 'COLUMNS']
