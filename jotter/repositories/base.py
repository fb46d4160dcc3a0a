"""
Base Repository.

Base class for all repositories with common lookup operations.
Repositories never commit; the scoped transaction that owns the session
does. Every write marks its table as changed so live queries refresh
after the commit.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from jotter.core.database import mark_changed
from jotter.core.logging import get_logger
from jotter.models.base import Base

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common lookup operations.

    Subclasses should set the model class and the tables their writes touch:

        class LabelRepository(BaseRepository[Label]):
            model = Label
            tables = ("labels",)
    """

    model: type[ModelType]
    tables: tuple[str, ...] = ()

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _touch(self, *extra: str) -> None:
        mark_changed(self.session, *self.tables, *extra)

    async def get_by_id_or_none(self, id: Any) -> ModelType | None:
        """Get a single record by primary key, returning None if not found."""
        return await self.session.get(self.model, id)

    async def exists(self, id: Any) -> bool:
        """Check if a record exists by primary key."""
        return await self.get_by_id_or_none(id) is not None
