"""SQLAlchemy ORM models for the tinyurl service.

This module defines the database schema using SQLAlchemy declarative models
with indexing for the redirect lookup and the expiry purge.

Data Model Layout
=================
::
    tiny_urls table
    ├─ id (VARCHAR(32) PRIMARY KEY)
    ├─ original_url (TEXT NOT NULL)
    ├─ short_code (VARCHAR(32) UNIQUE, INDEXED)
    ├─ expiration_time (TIMESTAMPTZ NULL, INDEXED)
    ├─ one_time_use (BOOLEAN NOT NULL)
    ├─ max_usage (INTEGER NOT NULL, 0 = unlimited)
    ├─ usage_count (INTEGER NOT NULL DEFAULT 0)
    ├─ max_attempts (INTEGER NOT NULL, 0 = unlimited)
    ├─ attempt_count (INTEGER NOT NULL DEFAULT 0)
    ├─ active (BOOLEAN NOT NULL DEFAULT TRUE)
    └─ created_at (TIMESTAMPTZ NOT NULL)

How to Use
===========
**Step 1 — From a domain value**::
    row = ShortLinkRow.from_domain(link)
    db.add(row)
    await db.commit()

**Step 2 — Back to a domain value**::
    link = row.to_domain()

**Step 3 — Write a transition back**::
    row.apply(updated_link)
    await db.commit()

Key Behaviours
===============
- short_code is unique and indexed for fast lookups during redirects.
- expiration_time is indexed for the bulk purge of expired links.
- created_at, id, original_url and short_code are never rewritten by ``apply``.

Classes:
    ShortLinkRow:  Persisted form of a ShortLink.
"""

import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tinyurl.database import Base
from tinyurl.domain import ShortLink, as_utc

__all__ = ["ShortLinkRow"]


class ShortLinkRow(Base):
    __tablename__ = "tiny_urls"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    original_url: Mapped[str] = mapped_column(Text, nullable=False)
    short_code: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    expiration_time: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), index=True, nullable=True
    )
    one_time_use: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    max_usage: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    max_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    attempt_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_domain(cls, link: ShortLink) -> "ShortLinkRow":
        return cls(
            id=link.id,
            original_url=link.original_url,
            short_code=link.short_code,
            expiration_time=link.expiration_time,
            one_time_use=link.one_time_use,
            max_usage=link.max_usage,
            usage_count=link.usage_count,
            max_attempts=link.max_attempts,
            attempt_count=link.attempt_count,
            active=link.active,
            created_at=link.created_at,
        )

    def to_domain(self) -> ShortLink:
        return ShortLink(
            id=self.id,
            original_url=self.original_url,
            short_code=self.short_code,
            expiration_time=as_utc(self.expiration_time),
            one_time_use=self.one_time_use,
            max_usage=self.max_usage,
            usage_count=self.usage_count,
            max_attempts=self.max_attempts,
            attempt_count=self.attempt_count,
            active=self.active,
            created_at=as_utc(self.created_at),
        )

    def apply(self, link: ShortLink) -> None:
        self.expiration_time = link.expiration_time
        self.one_time_use = link.one_time_use
        self.max_usage = link.max_usage
        self.usage_count = link.usage_count
        self.max_attempts = link.max_attempts
        self.attempt_count = link.attempt_count
        self.active = link.active

    def __repr__(self) -> str:
        return (
            f"<ShortLinkRow(short_code='{self.short_code}', usage_count={self.usage_count}, "
            f"attempt_count={self.attempt_count}, active={self.active})>"
        )
