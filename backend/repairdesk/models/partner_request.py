from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, Float, DateTime, Index
from repairdesk.models.user import Base
from repairdesk.constants.statuses import TicketStatus
from repairdesk.utils.timestamps import utcnow


class PartnerRequest(Base):
    __tablename__ = 'partner_requests'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    request_id: Mapped[str] = mapped_column(String(40), unique=True, nullable=False, index=True)
    partner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    customer_name: Mapped[str] = mapped_column(String(120), nullable=False)
    customer_email: Mapped[Optional[str]] = mapped_column(String(128))
    product: Mapped[str] = mapped_column(String(120), nullable=False)
    serial_number: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    fault: Mapped[str] = mapped_column(Text, nullable=False)
    # canonical TicketStatus value; partners see the projection
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=TicketStatus.NEW.value, index=True)
    estimated_cost: Mapped[Optional[float]] = mapped_column(Float)
    actual_cost: Mapped[Optional[float]] = mapped_column(Float)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (Index('ix_partner_requests_partner_status', 'partner_id', 'status'),)
