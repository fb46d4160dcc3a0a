"""
Label Repository.

Data access layer for the label set.
"""

from collections.abc import Iterable

from sqlalchemy import delete, select, update

from jotter.models.label import Label
from jotter.repositories.base import BaseRepository


class LabelRepository(BaseRepository[Label]):
    """Repository for Label model. Names are unique; inserts ignore duplicates."""

    model = Label
    tables = ("labels",)

    async def get_names(self) -> list[str]:
        """All label names, alphabetically."""
        result = await self.session.execute(select(Label.name).order_by(Label.name))
        return list(result.scalars().all())

    async def insert(self, name: str) -> bool:
        """
        Insert one label.

        Returns:
            False if a label with that name already exists
        """
        if await self.exists(name):
            return False
        self.session.add(Label(name=name))
        await self.session.flush()
        self._touch()
        return True

    async def insert_ignore(self, names: Iterable[str]) -> int:
        """
        Insert labels, skipping names that are already stored.

        Returns:
            Number of labels actually inserted
        """
        wanted = set(names)
        if not wanted:
            return 0
        result = await self.session.execute(select(Label.name).where(Label.name.in_(wanted)))
        missing = wanted - set(result.scalars().all())
        self.session.add_all(Label(name=name) for name in sorted(missing))
        await self.session.flush()
        if missing:
            self._touch()
        return len(missing)

    async def delete(self, name: str) -> bool:
        """Delete a label. Returns False if it did not exist."""
        result = await self.session.execute(delete(Label).where(Label.name == name))
        if result.rowcount:
            self._touch()
        return bool(result.rowcount)

    async def rename(self, old: str, new: str) -> bool:
        """Rename a label. Returns False if `old` did not exist."""
        result = await self.session.execute(
            update(Label)
            .where(Label.name == old)
            .values(name=new)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            self._touch()
        return bool(result.rowcount)
