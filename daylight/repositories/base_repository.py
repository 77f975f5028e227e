from datetime import datetime, timezone
from typing import Generic, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daylight.utils.logging import get_logger

ModelType = TypeVar("ModelType")

LOGGER = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """Shared lookups and writes for one table.

    Repositories only flush. Committing is left to the caller so that a
    service or activity can group several writes into one transaction.
    The worker connects with the service role, which bypasses row-level
    security, so user-facing reads go through ``owned_by``.
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        self.session = session
        self.model = model
        self.logger = LOGGER

    @property
    def table(self) -> str:
        return self.model.__tablename__

    def owned_by(self, user_id: UUID) -> Select:
        return select(self.model).where(self.model.user_id == user_id)

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        try:
            result = await self.session.execute(select(self.model).where(self.model.id == id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading {self.table} {id}: {e}", exc_info=True)
            raise

    async def get_for_user(self, id: UUID, user_id: UUID) -> Optional[ModelType]:
        try:
            result = await self.session.execute(self.owned_by(user_id).where(self.model.id == id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading {self.table} {id} for user {user_id}: {e}", exc_info=True)
            raise

    async def create(self, **fields) -> ModelType:
        try:
            instance = self.model(**fields)
            self.session.add(instance)
            await self.session.flush()
            return instance
        except SQLAlchemyError as e:
            self.logger.error(f"Error inserting into {self.table}: {e}", exc_info=True)
            raise

    async def update(self, id: UUID, **fields) -> Optional[ModelType]:
        """Set ``fields`` on the row and bump ``updated_at`` where the table has one.

        Returns None when the row does not exist. Unknown field names are ignored.
        """
        instance = await self.get_by_id(id)
        if instance is None:
            return None

        for key, value in fields.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        if hasattr(instance, "updated_at"):
            instance.updated_at = datetime.now(timezone.utc)

        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating {self.table} {id}: {e}", exc_info=True)
            raise
        return instance
