from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, DateTime
from repairdesk.models.user import Base
from repairdesk.constants.statuses import TicketStatus
from repairdesk.utils.timestamps import utcnow


class ServiceTicket(Base):
    """SQL backend for the /service-requests surface (mirrors the sheet columns)."""
    __tablename__ = 'service_tickets'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_name: Mapped[str] = mapped_column(String(120), nullable=False)
    customer_email: Mapped[Optional[str]] = mapped_column(String(128))
    # not unique: a closed ticket may be followed by a new one for the same device
    serial_number: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    product_details: Mapped[str] = mapped_column(String(255), nullable=False)
    purchase_date: Mapped[str] = mapped_column(String(32), nullable=False)
    photos: Mapped[str] = mapped_column(Text, default='')
    fault_description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=TicketStatus.NEW.value, index=True)
    assigned_to: Mapped[str] = mapped_column(String(120), default='')
    estimated_cost: Mapped[str] = mapped_column(String(32), default='')
    dispatch_details: Mapped[str] = mapped_column(Text, default='')
    repair_details: Mapped[str] = mapped_column(Text, default='')
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

# updated_at is set explicitly by the store so it doubles as the version token.
