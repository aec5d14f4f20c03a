"""Ticket Engine - Authorization, state changes, routing and metrics"""
from .permission_guard import PermissionGuard
from .history_writer import HistoryWriter
from . import metrics, routing_policy, state_machine

__all__ = [
    "PermissionGuard",
    "HistoryWriter",
    "metrics",
    "routing_policy",
    "state_machine",
]
