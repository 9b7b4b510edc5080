"""Category catalog seeding."""

from __future__ import annotations

from typing import Iterable, Optional

from ..constants.categories import DEFAULT_EXPENSE_CATEGORIES, CategorySpec
from ..infra.store import LedgerStore
from ..logging_config import get_logger
from ..models.category import Category

logger = get_logger("services.catalog")


def seed_categories(
    store: LedgerStore, specs: Optional[Iterable[CategorySpec]] = None
) -> list[Category]:
    """Upsert the catalog by name; safe to run on every start-up."""

    specs = list(specs if specs is not None else DEFAULT_EXPENSE_CATEGORIES)
    with store.unit() as unit:
        rows = [
            unit.categories.upsert_by_name(
                Category(
                    name=spec.name,
                    display_name=spec.display_name,
                    icon_class=spec.icon_class,
                    position=position,
                )
            )
            for position, spec in enumerate(specs)
        ]
    logger.info("Category catalog seeded", extra={"categories": [spec.name for spec in specs]})
    return rows
