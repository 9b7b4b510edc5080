"""SQLModel implementation of the Category repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import Session, select

from ...models.category import Category


class SQLModelCategoryRepository:
    """Read access to the category catalog plus idempotent seeding."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_name(self, name: str) -> Optional[Category]:
        statement = select(Category).where(Category.name == name)
        return self.session.exec(statement).first()

    def list_all(self) -> list[Category]:
        """List categories in catalog order."""
        statement = select(Category).order_by(Category.position, Category.name)  # type: ignore[arg-type]
        return list(self.session.exec(statement).all())

    def upsert_by_name(self, category: Category) -> Category:
        """Insert or update a category by name.

        Display metadata and position are refreshed; the name is the match key.
        """
        existing = self.get_by_name(category.name)
        if existing is None:
            self.session.add(category)
            self.session.flush()
            return category
        existing.display_name = category.display_name
        existing.icon_class = category.icon_class
        existing.position = category.position
        self.session.add(existing)
        self.session.flush()
        return existing
