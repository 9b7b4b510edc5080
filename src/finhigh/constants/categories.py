"""
Default expense category catalog.
Order here is the display order; ``name`` is the stable key stored on
transactions and aggregates.
"""

from __future__ import annotations

from typing import NamedTuple


class CategorySpec(NamedTuple):
    name: str
    display_name: str
    icon_class: str


DEFAULT_EXPENSE_CATEGORIES = [
    CategorySpec("food", "Food & Dining", "fas fa-utensils"),
    CategorySpec("shopping", "Shopping", "fas fa-shopping-bag"),
    CategorySpec("friends", "Friends & Social", "fas fa-users"),
    CategorySpec("weekend", "Weekend Outing", "fas fa-glass-cheers"),
    CategorySpec("social", "Social Service", "fas fa-hands-helping"),
]
