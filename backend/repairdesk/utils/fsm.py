from __future__ import annotations
"""Simple finite state machine utility for enforcing allowed status transitions.

Usage:
    from repairdesk.utils.fsm import TransitionValidator
    FLOW = TransitionValidator.forward_only(['new', 'under_repair', 'closed'])
    FLOW.assert_can_transition(current_status, target_status)

Raises ValidationError if invalid.
"""
from typing import Dict, Iterable, Set
from repairdesk.errors import ValidationError


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status'):
        self.graph = graph
        self.field_name = field_name

    @classmethod
    def forward_only(cls, flow: Iterable[str], field_name: str = 'status') -> 'TransitionValidator':
        """Each state may stay put or move to any later state; the last one is terminal."""
        ordered = list(flow)
        graph = {state: set(ordered[i:]) for i, state in enumerate(ordered)}
        return cls(graph, field_name)

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            raise ValidationError(f"Invalid {self.field_name} transition {current} -> {target}")
        return True

__all__ = ['TransitionValidator']
