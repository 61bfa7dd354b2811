from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from flask import current_app

from repairdesk.config.settings import DEFAULT_GEMINI_MODEL
from repairdesk.services.chat import ChatProxy
from repairdesk.services.mailer import Mailer
from repairdesk.services.notifications import NotificationDispatcher
from repairdesk.services.photo_storage import CloudinaryPhotoStorage
from repairdesk.services.ticket_store import TicketStore, SqlTicketStore

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'repairdesk'


@dataclass
class Integrations:
    """External handles built once per app; routes reach them via ``integrations()``."""
    ticket_store: TicketStore
    mailer: Mailer
    notifier: NotificationDispatcher
    photo_storage: Any
    chat: ChatProxy


def build_ticket_store(config, session_factory: Callable, sheets_service: Optional[Any] = None) -> TicketStore:
    enforce = bool(config.get('ENFORCE_TICKET_TRANSITIONS'))
    backend = config.get('TICKET_STORE', 'sql')
    if backend == 'sheets':
        from repairdesk.services.sheets_store import SheetsTicketStore, build_sheets_service
        service = sheets_service or build_sheets_service(config.get('GOOGLE_CREDENTIALS_FILE'))
        logger.info('Ticket store: Google Sheets')
        return SheetsTicketStore(service, config.get('SPREADSHEET_ID'), config.get('SHEET_TAB', 'ServiceRequests'),
                                 enforce_transitions=enforce)
    if backend != 'sql':
        raise RuntimeError(f"Unknown TICKET_STORE backend: {backend}")
    logger.info('Ticket store: SQL')
    return SqlTicketStore(session_factory, enforce_transitions=enforce)


def build_integrations(config, session_factory: Callable) -> Integrations:
    mailer = Mailer.from_config(config)
    return Integrations(
        ticket_store=build_ticket_store(config, session_factory, config.get('SHEETS_SERVICE')),
        mailer=mailer,
        notifier=NotificationDispatcher(mailer),
        photo_storage=CloudinaryPhotoStorage.from_config(config),
        chat=ChatProxy(config.get('GEMINI_API_KEY'), model=config.get('GEMINI_MODEL') or DEFAULT_GEMINI_MODEL),
    )


def integrations() -> Integrations:
    return current_app.extensions[EXTENSION_KEY]

__all__ = ['Integrations', 'build_integrations', 'build_ticket_store', 'integrations', 'EXTENSION_KEY']
