"""Integrator project/device registry and fault analytics."""
from __future__ import annotations
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from repairdesk.constants.statuses import DEVICE_STATUSES, FAULT_STATUSES, PROJECT_STATUSES
from repairdesk.errors import NotFound, ValidationError
from repairdesk.models.device import Device, FaultRecord
from repairdesk.models.project import Project
from repairdesk.utils.timestamps import utcnow, parse_iso
from repairdesk.utils.validation import parse_number

logger = logging.getLogger(__name__)

MONTH_NAMES = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')
TREND_MONTHS = 6
TOP_FAULTS = 10
UNKNOWN_FAULT_TYPE = 'Unknown'
# device states a resolved fault must not overwrite
TERMINAL_DEVICE_STATUSES = ('Replaced', 'Decommissioned')


def _devices_for(db: Session, integrator_id: str, project_id: Optional[str] = None) -> List[Device]:
    stmt = select(Device).where(Device.integrator_id == integrator_id)
    if project_id is not None:
        stmt = stmt.where(Device.project_id == project_id)
    return list(db.execute(stmt.order_by(Device.id.asc())).scalars().all())


def _open_fault_count(devices: List[Device]) -> int:
    return sum(1 for d in devices for f in d.fault_history if f.status != FaultRecord.STATUS_RESOLVED)


def _refresh_counts(db: Session, project: Project) -> None:
    devices = _devices_for(db, project.integrator_id, project.project_id)
    project.number_of_devices = len(devices)
    project.open_requests = _open_fault_count(devices)


def get_project(db: Session, integrator_id: str, project_id: str) -> Project:
    project = db.execute(
        select(Project).where(Project.integrator_id == integrator_id, Project.project_id == project_id)
    ).scalar_one_or_none()
    if project is None:
        raise NotFound('Project not found')
    return project


def get_device(db: Session, integrator_id: str, serial_number: str) -> Device:
    device = db.execute(
        select(Device).where(Device.integrator_id == integrator_id, Device.serial_number == serial_number)
    ).scalar_one_or_none()
    if device is None:
        raise NotFound('Device not found')
    return device


def list_projects_with_devices(db: Session, integrator_id: str) -> List[Dict[str, Any]]:
    projects = db.execute(
        select(Project).where(Project.integrator_id == integrator_id).order_by(Project.updated_at.desc(), Project.id.desc())
    ).scalars().all()
    out = []
    for project in projects:
        devices = _devices_for(db, integrator_id, project.project_id)
        data = project.to_json()
        data['numberOfDevices'] = len(devices)
        data['openRequests'] = _open_fault_count(devices)
        data['devices'] = [d.summary_json() for d in devices]
        out.append(data)
    return out


def _month_window(now: datetime, months: int) -> List[tuple]:
    """(year, month) pairs, oldest first, ending with the month of ``now``."""
    window = []
    for back in range(months - 1, -1, -1):
        index = now.year * 12 + (now.month - 1) - back
        window.append((index // 12, index % 12 + 1))
    return window


def fault_stats(db: Session, integrator_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utcnow()
    devices = _devices_for(db, integrator_id)
    faults = [f for d in devices for f in d.fault_history]

    breakdown = {status: 0 for status in DEVICE_STATUSES}
    for d in devices:
        breakdown[d.status] = breakdown.get(d.status, 0) + 1

    common = Counter()
    for f in faults:
        common[f.fault_type or UNKNOWN_FAULT_TYPE] += 1

    per_month = Counter()
    for f in faults:
        if f.reported_date is not None:
            per_month[(f.reported_date.year, f.reported_date.month)] += 1
    trends = [
        {'month': MONTH_NAMES[month - 1], 'period': f"{year:04d}-{month:02d}", 'faults': per_month[(year, month)]}
        for year, month in _month_window(now, TREND_MONTHS)
    ]

    # sorted() is stable: equal counts keep first-seen order
    ranked = sorted(common.items(), key=lambda kv: kv[1], reverse=True)[:TOP_FAULTS]
    resolved = sum(1 for f in faults if f.status == FaultRecord.STATUS_RESOLVED)
    return {
        'totalDevices': len(devices),
        'totalFaults': len(faults),
        'openFaults': len(faults) - resolved,
        'resolvedFaults': resolved,
        'deviceStatusBreakdown': breakdown,
        'commonFaults': dict(common),
        'faultTrends': trends,
        'commonFaultsArray': [{'faultType': t, 'count': c} for t, c in ranked],
    }


def next_project_id(db: Session, integrator_id: str) -> str:
    prefix = f"PROJ-{integrator_id[:4].upper()}-"
    seq = db.execute(
        select(func.count(Project.id)).where(Project.integrator_id == integrator_id)
    ).scalar_one() + 1
    while db.execute(select(Project.id).where(Project.project_id == f"{prefix}{seq:03d}")).first() is not None:
        seq += 1
    return f"{prefix}{seq:03d}"


def create_project(db: Session, integrator_id: str, fields: Dict[str, Any]) -> Project:
    missing = [f for f in ('name', 'location') if not str(fields.get(f) or '').strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    status = fields.get('status') or Project.STATUS_ACTIVE
    if status not in PROJECT_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(PROJECT_STATUSES)}")
    now = utcnow()
    project = Project(
        project_id=next_project_id(db, integrator_id),
        integrator_id=integrator_id,
        name=fields['name'],
        location=fields['location'],
        description=fields.get('description') or None,
        number_of_devices=0,
        open_requests=0,
        status=status,
        budget=parse_number(fields.get('budget'), 'budget'),
        start_date=parse_iso(fields.get('startDate')) or now,
        expected_end_date=parse_iso(fields.get('expectedEndDate')),
        created_at=now,
        updated_at=now,
    )
    db.add(project)
    db.commit()
    logger.info(f"Project {project.project_id} created for integrator {integrator_id}")
    return project


def _imported_faults(history: Any):
    """FaultRecords for a device's uploaded ``faultHistory``; (records, skip reason)."""
    if history is None:
        return [], None
    if not isinstance(history, list):
        return [], 'faultHistory must be an array'
    records = []
    for item in history:
        if not isinstance(item, dict):
            return [], 'faultHistory entries must be objects'
        status = item.get('status') or FaultRecord.STATUS_OPEN
        if status not in FAULT_STATUSES:
            return [], f'Invalid fault status {status}'
        try:
            cost = parse_number(item.get('cost'), 'cost')
        except ValidationError as e:
            return [], e.message
        resolved_date = None
        if status == FaultRecord.STATUS_RESOLVED:
            resolved_date = parse_iso(str(item.get('resolvedDate') or '')) or utcnow()
        records.append(FaultRecord(
            fault_type=str(item.get('faultType') or '').strip() or UNKNOWN_FAULT_TYPE,
            description=str(item.get('description') or ''),
            reported_date=parse_iso(str(item.get('reportedDate') or '')) or utcnow(),
            resolved_date=resolved_date,
            status=status,
            reported_by=item.get('reportedBy') or None,
            resolved_by=item.get('resolvedBy') or None,
            cost=cost,
        ))
    return records, None


def add_devices(db: Session, integrator_id: str, project_id: str, devices: Any) -> Dict[str, Any]:
    """Add a batch of devices; bad or duplicate entries are skipped, not fatal."""
    if not isinstance(devices, list):
        raise ValidationError('devices must be an array')
    project = get_project(db, integrator_id, project_id)

    skipped: List[Dict[str, Any]] = []
    seen = set()
    added = 0
    for entry in devices:
        entry = entry if isinstance(entry, dict) else {}
        serial = str(entry.get('serialNumber') or '').strip()
        if not serial or not str(entry.get('productType') or '').strip():
            skipped.append({'serialNumber': serial or None, 'reason': 'serialNumber and productType are required'})
            continue
        if serial in seen:
            skipped.append({'serialNumber': serial, 'reason': 'Duplicate serial number in request'})
            continue
        seen.add(serial)
        if db.execute(select(Device.id).where(Device.serial_number == serial)).first() is not None:
            skipped.append({'serialNumber': serial, 'reason': 'Serial number already registered'})
            continue
        status = entry.get('status') or Device.STATUS_OPERATIONAL
        if status not in DEVICE_STATUSES:
            skipped.append({'serialNumber': serial, 'reason': f'Invalid device status {status}'})
            continue
        faults, reason = _imported_faults(entry.get('faultHistory'))
        if reason:
            skipped.append({'serialNumber': serial, 'reason': reason})
            continue
        device = Device(
            serial_number=serial,
            project_id=project.project_id,
            integrator_id=integrator_id,
            product_type=entry['productType'],
            model=entry.get('model') or None,
            manufacturer=entry.get('manufacturer') or None,
            status=status,
            installation_date=parse_iso(entry.get('installationDate')) or utcnow(),
            location=entry.get('location') or project.location,
            notes=entry.get('notes') or None,
        )
        device.fault_history = faults
        db.add(device)
        added += 1

    db.flush()
    _refresh_counts(db, project)
    project.updated_at = utcnow()
    db.commit()
    logger.info(f"Added {added} devices to project {project_id} ({len(skipped)} skipped)")
    return {'devicesAdded': added, 'skipped': skipped}


def _project_of(db: Session, device: Device) -> Optional[Project]:
    return db.execute(
        select(Project).where(Project.project_id == device.project_id)
    ).scalar_one_or_none()


def report_fault(db: Session, integrator_id: str, serial_number: str, fields: Dict[str, Any]) -> FaultRecord:
    missing = [f for f in ('faultType', 'description') if not str(fields.get(f) or '').strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    device = get_device(db, integrator_id, serial_number)
    record = FaultRecord(
        fault_type=fields['faultType'],
        description=fields['description'],
        reported_date=parse_iso(fields.get('reportedDate')) or utcnow(),
        status=FaultRecord.STATUS_OPEN,
        reported_by=fields.get('reportedBy') or None,
        cost=parse_number(fields.get('cost'), 'cost'),
    )
    device.fault_history.append(record)
    if device.status not in TERMINAL_DEVICE_STATUSES:
        device.status = Device.STATUS_FAULTY
    db.flush()
    project = _project_of(db, device)
    if project is not None:
        _refresh_counts(db, project)
    db.commit()
    logger.info(f"Fault reported on device {serial_number}: {record.fault_type}")
    return record


def update_fault(db: Session, integrator_id: str, serial_number: str, index: int,
                 fields: Dict[str, Any]) -> FaultRecord:
    device = get_device(db, integrator_id, serial_number)
    if index < 0 or index >= len(device.fault_history):
        raise NotFound('Fault record not found')
    record = device.fault_history[index]

    status = fields.get('status')
    if status is not None:
        if status not in FAULT_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(FAULT_STATUSES)}")
        record.status = status
        record.resolved_date = utcnow() if status == FaultRecord.STATUS_RESOLVED else None
    if 'resolvedBy' in fields:
        record.resolved_by = fields['resolvedBy'] or None
    if 'cost' in fields:
        record.cost = parse_number(fields['cost'], 'cost')

    still_open = any(f.status != FaultRecord.STATUS_RESOLVED for f in device.fault_history)
    if not still_open and device.status not in TERMINAL_DEVICE_STATUSES:
        device.status = Device.STATUS_OPERATIONAL
    db.flush()
    project = _project_of(db, device)
    if project is not None:
        _refresh_counts(db, project)
    db.commit()
    return record

__all__ = [
    'list_projects_with_devices', 'fault_stats', 'create_project', 'add_devices',
    'report_fault', 'update_fault', 'get_project', 'get_device', 'next_project_id',
]
