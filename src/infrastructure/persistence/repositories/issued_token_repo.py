from datetime import datetime

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.models.issued_token import IssuedToken
from src.infrastructure.persistence.repositories.base import BaseRepository


class IssuedTokenRepository(BaseRepository[IssuedToken]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, IssuedToken)

    async def get_most_recent_active(self, subject_id: str) -> IssuedToken | None:
        """The subject's newest active token, the only one eligible to grant access"""
        result = await self.db.execute(
            select(IssuedToken)
            .where(IssuedToken.subject_id == subject_id)
            .where(IssuedToken.is_active.is_(True))
            .order_by(desc(IssuedToken.created_at), desc(IssuedToken.issued_at_ms))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_nonce(self, nonce: str) -> IssuedToken | None:
        """The issuance a scanned payload came from; nonces are unique per token"""
        result = await self.db.execute(select(IssuedToken).where(IssuedToken.nonce == nonce))
        return result.scalar_one_or_none()

    async def increment_usage(self, token_id: str, used_at: datetime) -> int | None:
        """
        Count one use of a token.

        A single UPDATE with use_count = use_count + 1 so concurrent scans of
        the same token never lose increments. Returns the new count, or None
        if no row matched.
        """
        result = await self.db.execute(
            update(IssuedToken)
            .where(IssuedToken.id == token_id)
            .values(use_count=IssuedToken.use_count + 1, last_used_at=used_at)
            .returning(IssuedToken.use_count)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    async def deactivate(self, token_id: str) -> bool:
        """Set is_active=False. Returns False if the token does not exist."""
        result = await self.db.execute(
            update(IssuedToken)
            .where(IssuedToken.id == token_id)
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def get_by_subject(
        self, subject_id: str, skip: int = 0, limit: int = 100
    ) -> list[IssuedToken]:
        """All tokens ever issued to a subject, newest first"""
        result = await self.db.execute(
            select(IssuedToken)
            .where(IssuedToken.subject_id == subject_id)
            .order_by(desc(IssuedToken.created_at), desc(IssuedToken.issued_at_ms))
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())
