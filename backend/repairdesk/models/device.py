from __future__ import annotations
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Float, DateTime, ForeignKey, Index
from repairdesk.models.user import Base
from repairdesk.utils.timestamps import utcnow, to_iso


class Device(Base):
    __tablename__ = 'devices'
    STATUS_OPERATIONAL = 'Operational'
    STATUS_FAULTY = 'Faulty'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    serial_number: Mapped[str] = mapped_column(String(80), unique=True, nullable=False, index=True)
    project_id: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    integrator_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    product_type: Mapped[str] = mapped_column(String(120), nullable=False)
    model: Mapped[Optional[str]] = mapped_column(String(120))
    manufacturer: Mapped[Optional[str]] = mapped_column(String(120))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_OPERATIONAL, index=True)
    installation_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    location: Mapped[Optional[str]] = mapped_column(String(160))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    # append-only; order_by id keeps report order
    fault_history: Mapped[List['FaultRecord']] = relationship(
        'FaultRecord', back_populates='device', order_by='FaultRecord.id', cascade='all'
    )

    __table_args__ = (
        Index('ix_devices_project_status', 'project_id', 'status'),
        Index('ix_devices_integrator_status', 'integrator_id', 'status'),
    )

    def summary_json(self) -> dict:
        return {
            'serialNumber': self.serial_number,
            'productType': self.product_type,
            'status': self.status,
            'faultHistory': [f.to_json() for f in self.fault_history],
        }


class FaultRecord(Base):
    __tablename__ = 'device_faults'
    STATUS_OPEN = 'Open'
    STATUS_RESOLVED = 'Resolved'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    device_id: Mapped[int] = mapped_column(ForeignKey('devices.id'), nullable=False, index=True)
    fault_type: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    reported_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    resolved_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_OPEN)
    reported_by: Mapped[Optional[str]] = mapped_column(String(120))
    resolved_by: Mapped[Optional[str]] = mapped_column(String(120))
    cost: Mapped[Optional[float]] = mapped_column(Float)

    device = relationship('Device', back_populates='fault_history')

    def to_json(self) -> dict:
        return {
            'faultType': self.fault_type,
            'description': self.description,
            'reportedDate': to_iso(self.reported_date),
            'resolvedDate': to_iso(self.resolved_date),
            'status': self.status,
            'reportedBy': self.reported_by,
            'resolvedBy': self.resolved_by,
            'cost': self.cost,
        }
