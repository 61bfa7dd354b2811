"""Central role and permission definitions to avoid typos in policy strings.

Permission codes follow RESOURCE.ACTION. Each code maps to the roles allowed to
perform it; ``services.policy.is_allowed`` is the only reader of this table.
"""
from __future__ import annotations
from typing import Dict, FrozenSet, List

ROLE_CUSTOMER = 'customer'
ROLE_SERVICE_TEAM = 'service_team'
ROLE_EPR_TEAM = 'epr_team'
ROLE_CHANNEL_PARTNER = 'channel_partner'
ROLE_SYSTEM_INTEGRATOR = 'system_integrator'

ALL_ROLES = (
    ROLE_CUSTOMER,
    ROLE_SERVICE_TEAM,
    ROLE_EPR_TEAM,
    ROLE_CHANNEL_PARTNER,
    ROLE_SYSTEM_INTEGRATOR,
)

RESOURCE_ACTIONS = {
    'TICKET': ['CREATE', 'READ', 'UPDATE', 'PHOTOS'],
    'PARTNER': ['READ', 'CREATE', 'UPDATE'],
    'INTEGRATOR': ['READ', 'MANAGE', 'FAULT.REPORT', 'FAULT.UPDATE'],
    'NOTIFY': ['SEND'],
}


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for resource, actions in RESOURCE_ACTIONS.items():
        for act in actions:
            codes.append(f"{resource}.{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

ROLE_POLICY: Dict[str, FrozenSet[str]] = {
    'TICKET.CREATE': frozenset({ROLE_CUSTOMER, ROLE_CHANNEL_PARTNER, ROLE_SYSTEM_INTEGRATOR}),
    'TICKET.READ': frozenset({ROLE_SERVICE_TEAM, ROLE_EPR_TEAM, ROLE_CHANNEL_PARTNER, ROLE_SYSTEM_INTEGRATOR}),
    'TICKET.UPDATE': frozenset({ROLE_SERVICE_TEAM, ROLE_EPR_TEAM}),
    # any signed-in user may attach photos to a ticket they can reference
    'TICKET.PHOTOS': frozenset(ALL_ROLES),
    'PARTNER.READ': frozenset({ROLE_CHANNEL_PARTNER, ROLE_EPR_TEAM}),
    'PARTNER.CREATE': frozenset({ROLE_CHANNEL_PARTNER}),
    'PARTNER.UPDATE': frozenset({ROLE_CHANNEL_PARTNER, ROLE_SERVICE_TEAM, ROLE_EPR_TEAM}),
    'INTEGRATOR.READ': frozenset({ROLE_SYSTEM_INTEGRATOR, ROLE_EPR_TEAM}),
    'INTEGRATOR.MANAGE': frozenset({ROLE_SYSTEM_INTEGRATOR}),
    'INTEGRATOR.FAULT.REPORT': frozenset({ROLE_SYSTEM_INTEGRATOR, ROLE_EPR_TEAM}),
    'INTEGRATOR.FAULT.UPDATE': frozenset({ROLE_SYSTEM_INTEGRATOR, ROLE_EPR_TEAM, ROLE_SERVICE_TEAM}),
    'NOTIFY.SEND': frozenset({ROLE_SERVICE_TEAM, ROLE_EPR_TEAM}),
}

__all__ = [
    'ROLE_CUSTOMER', 'ROLE_SERVICE_TEAM', 'ROLE_EPR_TEAM', 'ROLE_CHANNEL_PARTNER',
    'ROLE_SYSTEM_INTEGRATOR', 'ALL_ROLES', 'RESOURCE_ACTIONS', 'ALL_PERMISSION_CODES',
    'ROLE_POLICY', 'build_all_permission_codes',
]
