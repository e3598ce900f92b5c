"""Database operations for stored listens."""

import logging
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from scrobbles.db.models import ListenRecord
from scrobbles.importing.models import Listen

logger = logging.getLogger(__name__)


class ListenRepository:
    """Reads and writes ListenRecord rows for one user at a time."""

    async def list_listens(
        self,
        user_name: str,
        session: AsyncSession,
        start: int | None = None,
        end: int | None = None,
    ) -> list[ListenRecord]:
        """Listens with ``start <= listened_at < end`` (either bound optional), oldest first."""
        stmt = select(ListenRecord).where(ListenRecord.user_name == user_name)
        if start is not None:
            stmt = stmt.where(ListenRecord.listened_at >= start)
        if end is not None:
            stmt = stmt.where(ListenRecord.listened_at < end)
        stmt = stmt.order_by(ListenRecord.listened_at, ListenRecord.id)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def recent_listens(
        self,
        user_name: str,
        session: AsyncSession,
        limit: int = 50,
    ) -> list[ListenRecord]:
        """Most recent listens first."""
        stmt = (
            select(ListenRecord)
            .where(ListenRecord.user_name == user_name)
            .order_by(ListenRecord.listened_at.desc(), ListenRecord.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def count_listens(self, user_name: str, session: AsyncSession) -> int:
        stmt = select(func.count(ListenRecord.id)).where(ListenRecord.user_name == user_name)
        return (await session.execute(stmt)).scalar() or 0

    def add_listen(self, user_name: str, listen: Listen, session: AsyncSession) -> ListenRecord:
        """Stage a new row; it is written on the next flush."""
        record = ListenRecord.from_listen(user_name, listen)
        session.add(record)
        return record

    @staticmethod
    def merge_additional_info(record: ListenRecord, info: dict[str, Any]) -> bool:
        """Overlay the non-null fields of ``info`` onto the row's additional_info.

        Assigns a new dict (JSON columns do not track in-place mutation).
        Returns True if anything changed.
        """
        merged = {**(record.additional_info or {}), **{k: v for k, v in info.items() if v is not None}}
        if merged == record.additional_info:
            return False
        record.additional_info = merged
        return True

    async def delete_user_listens(self, user_name: str, session: AsyncSession) -> int:
        """Delete every stored listen of ``user_name``. Returns the number of rows removed."""
        result = await session.execute(delete(ListenRecord).where(ListenRecord.user_name == user_name))
        deleted = result.rowcount or 0
        logger.info("Deleted %d listens for user %s", deleted, user_name)
        return deleted
