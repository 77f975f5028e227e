from daylight.database.models import Evidence
from daylight.repositories.base_repository import BaseRepository

from sqlalchemy.ext.asyncio import AsyncSession


class EvidenceRepository(BaseRepository[Evidence]):
    """Repository for uploaded evidence metadata."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Evidence)
