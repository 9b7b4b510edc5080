"""Service module exports."""

from . import catalog, dashboard, locks, provisioning, reconcile, recorder

__all__ = [
    "catalog",
    "dashboard",
    "locks",
    "provisioning",
    "reconcile",
    "recorder",
]
