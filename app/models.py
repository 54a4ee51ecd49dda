"""SQLAlchemy ORM models for the URL shortener application.

Data Model Layout
=================
::
    url_mappings table
    ├─ short_code (VARCHAR(20) PRIMARY KEY)
    ├─ long_url (VARCHAR(2048) NOT NULL, INDEXED)
    ├─ created_at (TIMESTAMPTZ NOT NULL)
    ├─ expires_at (TIMESTAMPTZ NULL)
    └─ clicks (BIGINT DEFAULT 0)

How to Use
===========
**Step 1 — Import**::
    from app.models import UrlMapping

**Step 2 — Create a new mapping**::
    mapping = UrlMapping(short_code="abc123", long_url="https://example.com", created_at=now, clicks=0)
    db.add(mapping)
    await db.commit()

**Step 3 — Check expiration**::
    if mapping.is_expired(now):
        raise NotFoundError(mapping.short_code)

Key Behaviours
===============
- short_code is the primary key, so the database enforces uniqueness.
- long_url is indexed for duplicate detection but is not unique.
- Expiration is derived from expires_at at read time; rows are never deleted here.
- created_at is set by the service clock, not the database server.

Classes:
    UrlMapping:  A short code to long URL mapping with click tracking.
"""

import datetime

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

__all__ = ["UrlMapping", "as_utc"]


def as_utc(value: datetime.datetime) -> datetime.datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


class UrlMapping(Base):
    __tablename__ = "url_mappings"

    short_code: Mapped[str] = mapped_column(String(20), primary_key=True)
    long_url: Mapped[str] = mapped_column(String(2048), index=True, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    clicks: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    def is_expired(self, now: datetime.datetime) -> bool:
        if self.expires_at is None:
            return False
        return as_utc(self.expires_at) <= as_utc(now)

    def __repr__(self) -> str:
        return f"<UrlMapping(short_code='{self.short_code}', clicks={self.clicks})>"
