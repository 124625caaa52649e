"""Pydantic schemas for request/response validation in tinyurl.

This module defines Pydantic models for API input validation and output serialization,
plus the syntactic URI check shared by the HTTP layer and the service.

Schema Hierarchy
=================
::
    LinkCreate (Input)
    ├─ originalUrl: str (syntactic URI)
    ├─ expirationTime: datetime | None
    ├─ oneTimeUse: bool
    ├─ maxUsage: int >= 0 (0 = unlimited)
    └─ maxAttempts: int >= 0 (0 = unlimited)

    LinkResponse (Output)
    ├─ originalUrl, shortUrl, shortCode
    ├─ expirationTime, oneTimeUse
    ├─ maxUsage, usageCount
    ├─ maxAttempts, attemptCount
    ├─ active, createdAt
    └─ status (valid | expired | attempts_exceeded)

    CachedLinkPayload (Redis)
    └─ Full ShortLink record, snake_case

    HealthResponse (Output)
    ├─ status, database, cache

    ErrorResponse (Output)
    └─ error: str

How to Use
===========
**Step 1 — Input validation**::
    @router.post("/api/urls")
    async def create(payload: LinkCreate):
        ...

**Step 2 — Response serialization**::
    return LinkResponse.from_link(link, settings.short_url_for(link.short_code), now)

Key Behaviours
===============
- URL validation is purely syntactic: no reachability check and no scheme
  allow-list. Invalid URLs are reported as 400 by the service, not 422.
- JSON field names are camelCase; Python attributes stay snake_case.
- Naive datetimes are interpreted as UTC.

Classes:
    LinkCreate:  Input schema for link creation.
    LinkResponse:  Output schema for every endpoint returning a link.
    CachedLinkPayload:  Redis cache payload for the info view.
    HealthResponse:  Output schema for health checks.
    ErrorResponse:  Body returned for every core failure.
"""

import datetime
import ipaddress
import re
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from tinyurl.domain import ShortLink, as_utc
from tinyurl.enums import HealthStatus, LinkStatus

__all__ = [
    "is_valid_uri",
    "LinkCreate",
    "LinkResponse",
    "CachedLinkPayload",
    "HealthResponse",
    "ErrorResponse",
]

# RFC 3986 unreserved and reserved characters plus "%" escapes. Brackets are
# checked separately since they may only wrap an IPv6 host.
_ASCII_URI_CHARS = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~:/?#[]@!$&'()*+,;=%"
)
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")
_IPV6_HOST = re.compile(r"\[([0-9A-Fa-f:.]+)\](?::[0-9]*)?")


def _is_uri_char(ch: str) -> bool:
    if ch.isascii():
        return ch in _ASCII_URI_CHARS
    # Non-ASCII text is allowed unless it is a control, format or space character.
    return ch.isprintable()


def _brackets_wrap_ipv6_host(value: str, netloc: str) -> bool:
    if "[" not in value and "]" not in value:
        return True
    if value.count("[") != 1 or value.count("]") != 1:
        return False

    match = _IPV6_HOST.fullmatch(netloc.rpartition("@")[2])
    if match is None:
        return False
    try:
        ipaddress.IPv6Address(match.group(1))
    except ValueError:
        return False
    return True


def is_valid_uri(value: str) -> bool:
    """Return True when ``value`` is a syntactically well-formed URI reference."""
    if not isinstance(value, str) or not value:
        return False
    if not all(_is_uri_char(ch) for ch in value) or _BAD_ESCAPE.search(value):
        return False

    head, sep, _ = value.partition(":")
    if sep and "/" not in head and "?" not in head and "#" not in head:
        if not _SCHEME.fullmatch(head):
            return False

    try:
        parts = urlsplit(value)
        # Raises ValueError for a non-numeric or out-of-range port.
        parts.port
    except ValueError:
        return False
    return _brackets_wrap_ipv6_host(value, parts.netloc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LinkCreate(_CamelModel):
    original_url: str = Field(..., examples=["https://example.com/very/long/url/path?param=value"])
    expiration_time: datetime.datetime | None = Field(None, examples=["2030-12-31T23:59:59Z"])
    one_time_use: bool = False
    max_usage: int = Field(0, ge=0, description="Maximum number of uses (0 for unlimited)")
    max_attempts: int = Field(0, ge=0, description="Maximum number of access attempts (0 for unlimited)")

    @field_validator("expiration_time")
    @classmethod
    def normalize_expiration(cls, v: datetime.datetime | None) -> datetime.datetime | None:
        return as_utc(v)


class LinkResponse(_CamelModel):
    original_url: str
    short_url: str
    short_code: str
    expiration_time: datetime.datetime | None
    one_time_use: bool
    max_usage: int
    usage_count: int
    max_attempts: int
    attempt_count: int
    active: bool
    created_at: datetime.datetime
    status: LinkStatus

    @classmethod
    def from_link(cls, link: ShortLink, short_url: str, now: datetime.datetime) -> "LinkResponse":
        return cls(
            original_url=link.original_url,
            short_url=short_url,
            short_code=link.short_code,
            expiration_time=link.expiration_time,
            one_time_use=link.one_time_use,
            max_usage=link.max_usage,
            usage_count=link.usage_count,
            max_attempts=link.max_attempts,
            attempt_count=link.attempt_count,
            active=link.active,
            created_at=link.created_at,
            status=link.status(now),
        )


class CachedLinkPayload(BaseModel):
    """Redis cache payload for the info view of a link."""

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

    model_config = {"from_attributes": True}

    def to_link(self) -> ShortLink:
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


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
    cache: HealthStatus


class ErrorResponse(BaseModel):
    error: str
