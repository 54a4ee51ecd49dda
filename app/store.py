"""Durable store for short code mappings.

Thin repository over an ``AsyncSession``. The primary key on ``short_code``
is the only serialization point between concurrent writers: the first insert
wins and later ones surface as ``ConflictError``.

Operations
==========
::
    insert(mapping)           -> None, ConflictError on duplicate code
    find_by_code(code)        -> UrlMapping | None
    find_by_long_url(url)     -> UrlMapping | None
    exists_by_code(code)      -> bool
    update(mapping)           -> UrlMapping
    increment_clicks(code)    -> rows updated (0 or 1)
    count()                   -> int
"""

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError
from app.models import UrlMapping

__all__ = ["UrlMappingStore"]


class UrlMappingStore:
    def __init__(self, session: AsyncSession) -> None:
        self._db = session

    async def insert(self, mapping: UrlMapping) -> None:
        short_code = mapping.short_code
        self._db.add(mapping)
        try:
            await self._db.commit()
        except IntegrityError as exc:
            await self._db.rollback()
            raise ConflictError(short_code) from exc

    async def find_by_code(self, short_code: str) -> UrlMapping | None:
        return await self._db.get(UrlMapping, short_code)

    async def find_by_long_url(self, long_url: str) -> UrlMapping | None:
        result = await self._db.execute(
            select(UrlMapping).where(UrlMapping.long_url == long_url).order_by(UrlMapping.created_at).limit(1)
        )
        return result.scalar_one_or_none()

    async def exists_by_code(self, short_code: str) -> bool:
        result = await self._db.execute(select(UrlMapping.short_code).where(UrlMapping.short_code == short_code))
        return result.scalar_one_or_none() is not None

    async def update(self, mapping: UrlMapping) -> UrlMapping:
        merged = await self._db.merge(mapping)
        await self._db.commit()
        return merged

    async def increment_clicks(self, short_code: str) -> int:
        """Add one click in a single UPDATE so concurrent resolves never lose counts."""
        result = await self._db.execute(
            update(UrlMapping)
            .where(UrlMapping.short_code == short_code)
            .values(clicks=UrlMapping.clicks + 1)
        )
        await self._db.commit()
        return result.rowcount

    async def count(self) -> int:
        result = await self._db.execute(select(func.count()).select_from(UrlMapping))
        return result.scalar_one()
