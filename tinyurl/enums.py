"""Shared enums for the tinyurl service.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus", "CacheStatus", "ResolutionOutcome", "LinkStatus"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class RequestStatus(StrEnum):
    """Request status values for metrics and logging."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    ERROR = "error"
    NOT_FOUND = "not_found"


class CacheStatus(StrEnum):
    """Cache status values for metrics."""

    HIT = "true"
    MISS = "false"


class ResolutionOutcome(StrEnum):
    """Result of a single resolution attempt against an existing link."""

    PERMITTED = "permitted"
    EXPIRED = "expired"
    ATTEMPTS_EXCEEDED = "attempts_exceeded"


class LinkStatus(StrEnum):
    """Terminal-state view of a link, derived from its fields at read time."""

    VALID = "valid"
    EXPIRED = "expired"
    ATTEMPTS_EXCEEDED = "attempts_exceeded"
