from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, Float, DateTime, Index
from repairdesk.models.user import Base
from repairdesk.utils.timestamps import utcnow, to_iso


class Project(Base):
    __tablename__ = 'projects'
    STATUS_ACTIVE = 'Active'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[str] = mapped_column(String(40), unique=True, nullable=False, index=True)
    integrator_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    location: Mapped[str] = mapped_column(String(160), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    # cached; recomputed whenever the device list changes
    number_of_devices: Mapped[int] = mapped_column(Integer, default=0)
    open_requests: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_ACTIVE, index=True)
    budget: Mapped[Optional[float]] = mapped_column(Float)
    start_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    expected_end_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    actual_end_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (Index('ix_projects_integrator_status', 'integrator_id', 'status'),)

    def to_json(self) -> dict:
        return {
            'projectId': self.project_id,
            'integratorId': self.integrator_id,
            'name': self.name,
            'location': self.location,
            'description': self.description,
            'numberOfDevices': self.number_of_devices,
            'openRequests': self.open_requests,
            'status': self.status,
            'budget': self.budget,
            'startDate': to_iso(self.start_date),
            'expectedEndDate': to_iso(self.expected_end_date),
            'actualEndDate': to_iso(self.actual_end_date),
            'createdAt': to_iso(self.created_at),
            'updatedAt': to_iso(self.updated_at),
        }
