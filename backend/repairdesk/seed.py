"""Sample integrator data for demos and local development.

Idempotent: nothing is written when the sample integrator already owns a
project. ``commit=False`` leaves the caller to commit or roll back.
"""
from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Dict

from sqlalchemy import select

from repairdesk.models.device import Device, FaultRecord
from repairdesk.models.project import Project
from repairdesk.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

SAMPLE_INTEGRATOR = 'test@integrator.com'

SAMPLE_PROJECTS = [
    {
        'project_id': 'PROJ-TEST-001',
        'name': 'Smart City Infrastructure',
        'location': 'Downtown Metro Area',
        'description': 'IoT devices deployment for smart city initiative',
        'budget': 500000,
        'days_to_end': 90,
    },
    {
        'project_id': 'PROJ-TEST-002',
        'name': 'Industrial Complex Security',
        'location': 'North Industrial Zone',
        'description': 'Security system integration for manufacturing facility',
        'budget': 750000,
        'days_to_end': 120,
    },
]

SAMPLE_DEVICES = [
    {
        'serial_number': 'EPB-001-2024', 'project_id': 'PROJ-TEST-001', 'product_type': 'Energizer Power Bank',
        'model': 'EPB-5000', 'manufacturer': 'Energizer', 'status': 'Operational',
        'location': 'Building A - Floor 1', 'faults': [],
    },
    {
        'serial_number': 'GMC-002-2024', 'project_id': 'PROJ-TEST-001', 'product_type': 'Gate Motor Controller',
        'model': 'GMC-X1', 'manufacturer': 'SecureTech', 'status': 'Faulty', 'location': 'Main Entrance',
        'faults': [
            {'fault_type': 'Communication Error', 'description': 'Device not responding to network commands',
             'reported_date': datetime(2024, 1, 10), 'status': 'Open', 'reported_by': 'Maintenance Team'},
        ],
    },
    {
        'serial_number': 'PA-003-2024', 'project_id': 'PROJ-TEST-001', 'product_type': 'Power Adapter',
        'model': 'PA-120W', 'manufacturer': 'PowerTech', 'status': 'Under Repair', 'location': 'Server Room',
        'faults': [
            {'fault_type': 'Overheating', 'description': 'Device temperature exceeding safe limits',
             'reported_date': datetime(2024, 1, 8), 'resolved_date': datetime(2024, 1, 12), 'status': 'Resolved',
             'reported_by': 'System Monitor', 'resolved_by': 'Tech Team A', 'cost': 150},
            {'fault_type': 'Output Voltage Low', 'description': 'Output voltage below specification',
             'reported_date': datetime(2024, 1, 15), 'status': 'In Progress', 'reported_by': 'Field Engineer'},
        ],
    },
    {
        'serial_number': 'SPC-004-2024', 'project_id': 'PROJ-TEST-002', 'product_type': 'Solar Panel Controller',
        'model': 'SPC-2000', 'manufacturer': 'SolarTech', 'status': 'Operational', 'location': 'Rooftop - Section B',
        'faults': [
            {'fault_type': 'Battery Charging Issue', 'description': 'Battery not reaching full charge',
             'reported_date': datetime(2023, 12, 20), 'resolved_date': datetime(2023, 12, 22), 'status': 'Resolved',
             'reported_by': 'Monitoring System', 'resolved_by': 'Solar Team', 'cost': 200},
        ],
    },
    {
        'serial_number': 'BC-005-2024', 'project_id': 'PROJ-TEST-002', 'product_type': 'Battery Charger',
        'model': 'BC-12V', 'manufacturer': 'BatteryPro', 'status': 'Replaced', 'location': 'Backup Power Room',
        'faults': [
            {'fault_type': 'Hardware Failure', 'description': 'Internal component failure requiring replacement',
             'reported_date': datetime(2024, 1, 5), 'resolved_date': datetime(2024, 1, 10), 'status': 'Resolved',
             'reported_by': 'Facility Manager', 'resolved_by': 'Replacement Team', 'cost': 500},
        ],
    },
]


def seed_sample_data(session, commit: bool = True) -> Dict[str, int]:
    existing = session.execute(
        select(Project.id).where(Project.integrator_id == SAMPLE_INTEGRATOR)
    ).first()
    if existing is not None:
        logger.info('Sample data already exists, skipping seed.')
        return {'projects': 0, 'devices': 0}

    now = utcnow()
    projects = {}
    for entry in SAMPLE_PROJECTS:
        project = Project(
            project_id=entry['project_id'],
            integrator_id=SAMPLE_INTEGRATOR,
            name=entry['name'],
            location=entry['location'],
            description=entry['description'],
            status=Project.STATUS_ACTIVE,
            budget=entry['budget'],
            start_date=now,
            expected_end_date=now + timedelta(days=entry['days_to_end']),
        )
        session.add(project)
        projects[project.project_id] = project

    for entry in SAMPLE_DEVICES:
        device = Device(
            serial_number=entry['serial_number'],
            project_id=entry['project_id'],
            integrator_id=SAMPLE_INTEGRATOR,
            product_type=entry['product_type'],
            model=entry['model'],
            manufacturer=entry['manufacturer'],
            status=entry['status'],
            location=entry['location'],
        )
        device.fault_history = [FaultRecord(**fault) for fault in entry['faults']]
        session.add(device)

    for project_id, project in projects.items():
        devices = [d for d in SAMPLE_DEVICES if d['project_id'] == project_id]
        project.number_of_devices = len(devices)
        project.open_requests = sum(
            1 for d in devices for f in d['faults'] if f['status'] != FaultRecord.STATUS_RESOLVED
        )

    if commit:
        session.commit()
    else:
        session.flush()
    logger.info(f"Seeded {len(SAMPLE_PROJECTS)} projects and {len(SAMPLE_DEVICES)} devices for {SAMPLE_INTEGRATOR}")
    return {'projects': len(SAMPLE_PROJECTS), 'devices': len(SAMPLE_DEVICES)}

__all__ = ['seed_sample_data', 'SAMPLE_INTEGRATOR', 'SAMPLE_PROJECTS', 'SAMPLE_DEVICES']
