"""Unit tests for the link value type and the resolution state machine."""

import dataclasses
import datetime

import pytest

from tinyurl.domain import ShortLink, as_utc, resolve_transition
from tinyurl.enums import LinkStatus, ResolutionOutcome

NOW = datetime.datetime(2030, 1, 1, tzinfo=datetime.timezone.utc)


def make_link(**overrides) -> ShortLink:
    link = ShortLink.new("https://example.com", "abc123", now=NOW)
    return dataclasses.replace(link, **overrides)


def resolve_many(link: ShortLink, times: int, now: datetime.datetime = NOW):
    outcomes = []
    for _ in range(times):
        link, outcome = resolve_transition(link, now)
        outcomes.append(outcome)
    return link, outcomes


def test_new_link_starts_clean() -> None:
    link = ShortLink.new("https://example.com", "abc123", now=NOW, max_usage=3, max_attempts=5)
    assert link.usage_count == 0
    assert link.attempt_count == 0
    assert link.active is True
    assert link.created_at == NOW
    assert link.id


def test_new_link_rejects_negative_limits() -> None:
    with pytest.raises(ValueError):
        ShortLink.new("https://example.com", "abc123", now=NOW, max_usage=-1)


def test_unlimited_link_always_permitted() -> None:
    link, outcomes = resolve_many(make_link(), 50)
    assert set(outcomes) == {ResolutionOutcome.PERMITTED}
    assert link.usage_count == 50
    assert link.attempt_count == 50


def test_one_time_use_allows_single_use() -> None:
    link, outcomes = resolve_many(make_link(one_time_use=True), 3)
    assert outcomes == [ResolutionOutcome.PERMITTED, ResolutionOutcome.EXPIRED, ResolutionOutcome.EXPIRED]
    assert link.usage_count == 1
    assert link.attempt_count == 3


def test_max_usage_blocks_after_limit() -> None:
    link, outcomes = resolve_many(make_link(max_usage=3), 5)
    assert outcomes[:3] == [ResolutionOutcome.PERMITTED] * 3
    assert outcomes[3:] == [ResolutionOutcome.EXPIRED] * 2
    assert link.usage_count == 3
    assert link.attempt_count == 5


def test_max_attempts_reports_attempts_exceeded_on_attempt_after_limit() -> None:
    link, outcomes = resolve_many(make_link(max_attempts=2), 3)
    assert outcomes == [
        ResolutionOutcome.PERMITTED,
        ResolutionOutcome.PERMITTED,
        ResolutionOutcome.ATTEMPTS_EXCEEDED,
    ]
    assert link.attempt_count == 3
    assert link.usage_count == 2


def test_attempts_exceeded_takes_precedence_over_expiry() -> None:
    link = make_link(max_attempts=1, attempt_count=1, expiration_time=NOW - datetime.timedelta(days=1))
    updated, outcome = resolve_transition(link, NOW)
    assert outcome is ResolutionOutcome.ATTEMPTS_EXCEEDED
    assert updated.attempt_count == 2


def test_expired_link_still_counts_attempt() -> None:
    link = make_link(expiration_time=NOW - datetime.timedelta(seconds=1))
    updated, outcome = resolve_transition(link, NOW)
    assert outcome is ResolutionOutcome.EXPIRED
    assert updated.attempt_count == 1
    assert updated.usage_count == 0


def test_expiration_exactly_now_is_not_expired() -> None:
    link = make_link(expiration_time=NOW)
    _, outcome = resolve_transition(link, NOW)
    assert outcome is ResolutionOutcome.PERMITTED


def test_inactive_link_is_expired() -> None:
    link = make_link().deactivated()
    updated, outcome = resolve_transition(link, NOW)
    assert outcome is ResolutionOutcome.EXPIRED
    assert updated.active is False


def test_usage_limit_uses_count_before_increment() -> None:
    link = make_link(max_usage=2, usage_count=1)
    updated, outcome = resolve_transition(link, NOW)
    assert outcome is ResolutionOutcome.PERMITTED
    assert updated.usage_count == 2


def test_transition_does_not_mutate_input() -> None:
    link = make_link()
    resolve_transition(link, NOW)
    assert link.attempt_count == 0
    assert link.usage_count == 0


def test_status_is_derived_from_fields() -> None:
    assert make_link().status(NOW) is LinkStatus.VALID
    assert make_link(max_usage=1, usage_count=1).status(NOW) is LinkStatus.EXPIRED
    assert make_link(max_attempts=1, attempt_count=2).status(NOW) is LinkStatus.ATTEMPTS_EXCEEDED


def test_field_setters_validate_and_copy() -> None:
    link = make_link()
    assert link.with_max_usage(0).max_usage == 0
    assert link.with_max_attempts(7).max_attempts == 7
    with pytest.raises(ValueError):
        link.with_max_attempts(-1)
    naive = datetime.datetime(2031, 5, 1, 8, 30)
    assert link.with_expiration(naive).expiration_time == naive.replace(tzinfo=datetime.timezone.utc)


def test_as_utc_converts_aware_datetimes() -> None:
    plus_two = datetime.timezone(datetime.timedelta(hours=2))
    value = datetime.datetime(2030, 1, 1, 14, 0, tzinfo=plus_two)
    assert as_utc(value) == datetime.datetime(2030, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
    assert as_utc(None) is None
