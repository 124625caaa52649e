"""Link record value type and the resolution state machine.

``ShortLink`` is an immutable value. Nothing in this module touches storage:
every transition takes the current record and returns the next one, and the
store decides how to persist it atomically.

Resolution State Machine
========================
::
    resolve_transition(link, now)
           │
           ▼
    attempt_count += 1            (always kept, even on rejection)
           │
           ▼
    max_attempts > 0 and
    attempt_count > max_attempts ──yes──▶ ATTEMPTS_EXCEEDED
           │ no
           ▼
    is_expired(now)?             ──yes──▶ EXPIRED
    (usage_count before increment)
           │ no
           ▼
    usage_count += 1             ───────▶ PERMITTED

Key Behaviours
===============
- The attempts check runs before the expiry check, so a link that is both
  over its attempt budget and expired reports ATTEMPTS_EXCEEDED.
- ``max_attempts`` uses strict ``>`` on the post-increment count while
  ``max_usage`` uses ``>=`` on the pre-increment count. A link therefore
  allows ``max_attempts`` attempts before lockout and ``max_usage`` uses.
- Terminal state is never stored; only ``active`` is a persisted flag.
"""

import dataclasses
import datetime
import uuid
from dataclasses import dataclass

from tinyurl.enums import LinkStatus, ResolutionOutcome

__all__ = ["ShortLink", "resolve_transition", "utc_now", "as_utc"]


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def as_utc(value: datetime.datetime | None) -> datetime.datetime | None:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


@dataclass(frozen=True)
class ShortLink:
    id: str
    original_url: str
    short_code: str
    expiration_time: datetime.datetime | None
    one_time_use: bool
    max_usage: int
    usage_count: int
    max_attempts: int
    attempt_count: int
    active: bool
    created_at: datetime.datetime

    @classmethod
    def new(
        cls,
        original_url: str,
        short_code: str,
        *,
        now: datetime.datetime,
        expiration_time: datetime.datetime | None = None,
        one_time_use: bool = False,
        max_usage: int = 0,
        max_attempts: int = 0,
    ) -> "ShortLink":
        if max_usage < 0 or max_attempts < 0:
            raise ValueError("max_usage and max_attempts must be non-negative")
        return cls(
            id=uuid.uuid4().hex,
            original_url=original_url,
            short_code=short_code,
            expiration_time=as_utc(expiration_time),
            one_time_use=one_time_use,
            max_usage=max_usage,
            usage_count=0,
            max_attempts=max_attempts,
            attempt_count=0,
            active=True,
            created_at=now,
        )

    def is_expired(self, now: datetime.datetime) -> bool:
        if self.expiration_time is not None and now > self.expiration_time:
            return True
        if self.one_time_use and self.usage_count >= 1:
            return True
        if self.max_usage > 0 and self.usage_count >= self.max_usage:
            return True
        return not self.active

    def attempts_exceeded(self) -> bool:
        return self.max_attempts > 0 and self.attempt_count > self.max_attempts

    def status(self, now: datetime.datetime) -> LinkStatus:
        if self.attempts_exceeded():
            return LinkStatus.ATTEMPTS_EXCEEDED
        if self.is_expired(now):
            return LinkStatus.EXPIRED
        return LinkStatus.VALID

    def deactivated(self) -> "ShortLink":
        return dataclasses.replace(self, active=False)

    def with_expiration(self, expiration_time: datetime.datetime | None) -> "ShortLink":
        return dataclasses.replace(self, expiration_time=as_utc(expiration_time))

    def with_max_usage(self, max_usage: int) -> "ShortLink":
        if max_usage < 0:
            raise ValueError(f"max_usage must be non-negative, got {max_usage!r}")
        return dataclasses.replace(self, max_usage=max_usage)

    def with_max_attempts(self, max_attempts: int) -> "ShortLink":
        if max_attempts < 0:
            raise ValueError(f"max_attempts must be non-negative, got {max_attempts!r}")
        return dataclasses.replace(self, max_attempts=max_attempts)


def resolve_transition(
    link: ShortLink, now: datetime.datetime
) -> tuple[ShortLink, ResolutionOutcome]:
    """Apply one resolution attempt.

    The returned link must be persisted whatever the outcome, because the
    attempt counter has moved.
    """
    attempted = dataclasses.replace(link, attempt_count=link.attempt_count + 1)

    if attempted.attempts_exceeded():
        return attempted, ResolutionOutcome.ATTEMPTS_EXCEEDED

    if attempted.is_expired(now):
        return attempted, ResolutionOutcome.EXPIRED

    used = dataclasses.replace(attempted, usage_count=attempted.usage_count + 1)
    return used, ResolutionOutcome.PERMITTED
