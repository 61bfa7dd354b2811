"""users, service tickets, partner requests, projects, devices

Revision ID: 0001_initial_schema
Revises: 
Create Date: 2026-10-18
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='customer'),
        sa.Column('phone', sa.String(length=32)),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('service_tickets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_name', sa.String(length=120), nullable=False),
        sa.Column('customer_email', sa.String(length=128)),
        sa.Column('serial_number', sa.String(length=80), nullable=False),
        sa.Column('product_details', sa.String(length=255), nullable=False),
        sa.Column('purchase_date', sa.String(length=32), nullable=False),
        sa.Column('photos', sa.Text(), server_default=''),
        sa.Column('fault_description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='new'),
        sa.Column('assigned_to', sa.String(length=120), server_default=''),
        sa.Column('estimated_cost', sa.String(length=32), server_default=''),
        sa.Column('dispatch_details', sa.Text(), server_default=''),
        sa.Column('repair_details', sa.Text(), server_default=''),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_service_tickets_serial_number', 'service_tickets', ['serial_number'])
    op.create_index('ix_service_tickets_status', 'service_tickets', ['status'])

    op.create_table('partner_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('request_id', sa.String(length=40), nullable=False, unique=True),
        sa.Column('partner_id', sa.String(length=128), nullable=False),
        sa.Column('customer_name', sa.String(length=120), nullable=False),
        sa.Column('customer_email', sa.String(length=128)),
        sa.Column('product', sa.String(length=120), nullable=False),
        sa.Column('serial_number', sa.String(length=80), nullable=False),
        sa.Column('fault', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='new'),
        sa.Column('estimated_cost', sa.Float()),
        sa.Column('actual_cost', sa.Float()),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_partner_requests_request_id', 'partner_requests', ['request_id'])
    op.create_index('ix_partner_requests_partner_id', 'partner_requests', ['partner_id'])
    op.create_index('ix_partner_requests_serial_number', 'partner_requests', ['serial_number'])
    op.create_index('ix_partner_requests_status', 'partner_requests', ['status'])
    op.create_index('ix_partner_requests_partner_status', 'partner_requests', ['partner_id', 'status'])

    op.create_table('projects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('project_id', sa.String(length=40), nullable=False, unique=True),
        sa.Column('integrator_id', sa.String(length=128), nullable=False),
        sa.Column('name', sa.String(length=160), nullable=False),
        sa.Column('location', sa.String(length=160), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('number_of_devices', sa.Integer(), server_default='0'),
        sa.Column('open_requests', sa.Integer(), server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='Active'),
        sa.Column('budget', sa.Float()),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('expected_end_date', sa.DateTime()),
        sa.Column('actual_end_date', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_projects_project_id', 'projects', ['project_id'])
    op.create_index('ix_projects_integrator_id', 'projects', ['integrator_id'])
    op.create_index('ix_projects_status', 'projects', ['status'])
    op.create_index('ix_projects_integrator_status', 'projects', ['integrator_id', 'status'])

    op.create_table('devices',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('serial_number', sa.String(length=80), nullable=False, unique=True),
        sa.Column('project_id', sa.String(length=40), nullable=False),
        sa.Column('integrator_id', sa.String(length=128), nullable=False),
        sa.Column('product_type', sa.String(length=120), nullable=False),
        sa.Column('model', sa.String(length=120)),
        sa.Column('manufacturer', sa.String(length=120)),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='Operational'),
        sa.Column('installation_date', sa.DateTime(), nullable=True),
        sa.Column('location', sa.String(length=160)),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_devices_serial_number', 'devices', ['serial_number'])
    op.create_index('ix_devices_project_id', 'devices', ['project_id'])
    op.create_index('ix_devices_integrator_id', 'devices', ['integrator_id'])
    op.create_index('ix_devices_status', 'devices', ['status'])
    op.create_index('ix_devices_project_status', 'devices', ['project_id', 'status'])
    op.create_index('ix_devices_integrator_status', 'devices', ['integrator_id', 'status'])

    op.create_table('device_faults',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('device_id', sa.Integer(), sa.ForeignKey('devices.id'), nullable=False),
        sa.Column('fault_type', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('reported_date', sa.DateTime(), nullable=True),
        sa.Column('resolved_date', sa.DateTime()),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='Open'),
        sa.Column('reported_by', sa.String(length=120)),
        sa.Column('resolved_by', sa.String(length=120)),
        sa.Column('cost', sa.Float()),
    )
    op.create_index('ix_device_faults_device_id', 'device_faults', ['device_id'])


def downgrade():
    op.drop_table('device_faults')
    op.drop_table('devices')
    op.drop_table('projects')
    op.drop_table('partner_requests')
    op.drop_table('service_tickets')
    op.drop_table('users')
