from __future__ import annotations
from flask import Blueprint
from repairdesk import get_db
from repairdesk.decorators.auth import require_permissions
from repairdesk.services import registry
from repairdesk.utils.validation import json_body, require_fields

integrator_bp = Blueprint('integrator', __name__)


@integrator_bp.get('/<integrator_id>/projects')
@require_permissions('INTEGRATOR.READ')
def list_projects(integrator_id):
    projects = registry.list_projects_with_devices(get_db(), integrator_id)
    return {'success': True, 'projects': projects, 'total': len(projects)}


@integrator_bp.get('/<integrator_id>/fault-stats')
@require_permissions('INTEGRATOR.READ')
def fault_stats(integrator_id):
    return {'success': True, 'stats': registry.fault_stats(get_db(), integrator_id)}


@integrator_bp.post('/<integrator_id>/projects')
@require_permissions('INTEGRATOR.MANAGE')
def create_project(integrator_id):
    data = json_body()
    require_fields(data, ['name', 'location'])
    project = registry.create_project(get_db(), integrator_id, data)
    return {'success': True, 'message': 'Project created successfully', 'project': project.to_json()}, 201


@integrator_bp.post('/<integrator_id>/projects/<project_id>/devices')
@require_permissions('INTEGRATOR.MANAGE')
def add_devices(integrator_id, project_id):
    data = json_body()
    result = registry.add_devices(get_db(), integrator_id, project_id, data.get('devices'))
    return {
        'success': True,
        'message': f"Successfully added {result['devicesAdded']} devices to project",
        **result,
    }, 201


@integrator_bp.post('/<integrator_id>/devices/<serial_number>/faults')
@require_permissions('INTEGRATOR.FAULT.REPORT')
def report_fault(integrator_id, serial_number):
    data = json_body()
    require_fields(data, ['faultType', 'description'])
    record = registry.report_fault(get_db(), integrator_id, serial_number, data)
    return {'success': True, 'message': 'Fault reported successfully', 'fault': record.to_json()}, 201


@integrator_bp.patch('/<integrator_id>/devices/<serial_number>/faults/<int:index>')
@require_permissions('INTEGRATOR.FAULT.UPDATE')
def update_fault(integrator_id, serial_number, index):
    data = json_body()
    record = registry.update_fault(get_db(), integrator_id, serial_number, index, data)
    device = registry.get_device(get_db(), integrator_id, serial_number)
    return {
        'success': True,
        'message': 'Fault updated successfully',
        'fault': record.to_json(),
        'deviceStatus': device.status,
    }
