"""Base repository pattern for data access abstraction."""

import logging
from typing import Generic, TypeVar, Type, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import Base
from ..utils.cursor import TimelineCursor

T = TypeVar('T', bound=Base)
logger = logging.getLogger(__name__)

# Bulk statements skip identity-map synchronisation; callers re-read what they need
BULK_OPTIONS = {"synchronize_session": False}


def keyset_before(created_at_column, id_column, cursor: TimelineCursor):
    """Rows strictly older than the cursor in (created_at DESC, id DESC) order."""
    return or_(
        created_at_column < cursor.created_at,
        and_(created_at_column == cursor.created_at, id_column < cursor.post_id),
    )


class BaseRepository(Generic[T]):
    """
    Generic repository for database operations.

    Provides common CRUD operations following Repository Pattern.
    """

    def __init__(self, model: Type[T], session: AsyncSession):
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> Optional[T]:
        """Get entity by ID."""
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def create(self, entity: T) -> T:
        """Create new entity."""
        self.session.add(entity)
        await self.session.flush()
        return entity

    def _insert(self):
        """INSERT construct supporting ON CONFLICT DO NOTHING for the bound dialect."""
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(self.model)
        if dialect == "sqlite":
            return sqlite.insert(self.model)
        raise NotImplementedError(f"Conflict-ignoring insert is not supported for dialect {dialect!r}")
