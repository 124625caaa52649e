"""Persistence boundary for short links.

The service talks to storage only through ``LinkStore``. The SQLAlchemy
implementation keeps every read-modify-write inside one transaction with a
row lock, so two concurrent resolutions of the same code are serialized.

Flow Diagram — update()
=======================
::
    ┌──────────────────────┐
    │ SELECT ... FOR UPDATE │
    └──────────┬───────────┘
         found?│
      ┌────────┴────────┐
      │ no              │ yes
      ▼                 ▼
    rollback      transition(link) ──▶ (new_link, result)
    return None         │
                        ▼
                  row.apply(new_link)
                  COMMIT
                  return (new_link, result)

Key Behaviours
===============
- ``update`` always writes the link returned by the transition, whatever
  result the transition reports.
- ``insert`` turns a short_code unique violation into ``ShortCodeConflict``.
- ``delete_where_expired`` only removes rows with an expiration time set and
  earlier than ``now``; usage or attempt exhaustion never deletes a row.
"""

import datetime
from collections.abc import Callable
from typing import Protocol, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tinyurl.domain import ShortLink
from tinyurl.exceptions import ShortCodeConflict
from tinyurl.models import ShortLinkRow

__all__ = ["LinkStore", "SqlAlchemyLinkStore"]

R = TypeVar("R")


class LinkStore(Protocol):
    async def find_by_code(self, short_code: str) -> ShortLink | None: ...

    async def exists(self, short_code: str) -> bool: ...

    async def insert(self, link: ShortLink) -> ShortLink: ...

    async def save(self, link: ShortLink) -> ShortLink: ...

    async def update(
        self, short_code: str, transition: Callable[[ShortLink], tuple[ShortLink, R]]
    ) -> tuple[ShortLink, R] | None: ...

    async def delete_where_expired(self, now: datetime.datetime) -> int: ...


class SqlAlchemyLinkStore:
    def __init__(self, db: AsyncSession):
        self._db = db

    async def find_by_code(self, short_code: str) -> ShortLink | None:
        result = await self._db.execute(select(ShortLinkRow).where(ShortLinkRow.short_code == short_code))
        row = result.scalar_one_or_none()
        return row.to_domain() if row is not None else None

    async def exists(self, short_code: str) -> bool:
        result = await self._db.execute(select(ShortLinkRow.id).where(ShortLinkRow.short_code == short_code))
        return result.scalar_one_or_none() is not None

    async def insert(self, link: ShortLink) -> ShortLink:
        row = ShortLinkRow.from_domain(link)
        self._db.add(row)
        try:
            await self._db.commit()
        except IntegrityError as exc:
            await self._db.rollback()
            raise ShortCodeConflict(link.short_code) from exc
        return link

    async def save(self, link: ShortLink) -> ShortLink:
        await self._db.merge(ShortLinkRow.from_domain(link))
        await self._db.commit()
        return link

    async def update(
        self, short_code: str, transition: Callable[[ShortLink], tuple[ShortLink, R]]
    ) -> tuple[ShortLink, R] | None:
        try:
            result = await self._db.execute(
                select(ShortLinkRow)
                .where(ShortLinkRow.short_code == short_code)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            row = result.scalar_one_or_none()
            if row is None:
                await self._db.rollback()
                return None

            updated, outcome = transition(row.to_domain())
            row.apply(updated)
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise

        return updated, outcome

    async def delete_where_expired(self, now: datetime.datetime) -> int:
        result = await self._db.execute(
            delete(ShortLinkRow).where(
                ShortLinkRow.expiration_time.is_not(None),
                ShortLinkRow.expiration_time < now,
            )
        )
        await self._db.commit()
        return result.rowcount or 0
