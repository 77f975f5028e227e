"""Repositories for the profile and case rows that feed the extraction prompt."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from daylight.database.models import Case, Profile
from daylight.repositories.base_repository import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    """Repository for user profiles."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Profile)

    async def get_display_name(self, user_id: UUID) -> Optional[str]:
        profile = await self.get_by_id(user_id)
        if profile and profile.full_name:
            return profile.full_name
        return None

    async def get_timezone(self, user_id: UUID) -> Optional[str]:
        profile = await self.get_by_id(user_id)
        return profile.timezone if profile else None


class CaseRepository(BaseRepository[Case]):
    """Repository for custody case records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Case)

    async def get_latest_for_user(self, user_id: UUID) -> Optional[Case]:
        """Return the user's most recently created case, if any."""
        query = (
            select(Case)
            .where(Case.user_id == user_id)
            .order_by(Case.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()
