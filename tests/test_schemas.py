"""Tests for URI validation and request/response schemas."""

import datetime

import pytest
from pydantic import ValidationError

from tinyurl.domain import ShortLink
from tinyurl.enums import LinkStatus
from tinyurl.schemas import LinkCreate, LinkResponse, is_valid_uri

NOW = datetime.datetime(2030, 1, 1, tzinfo=datetime.timezone.utc)


@pytest.mark.parametrize(
    "value",
    [
        "https://example.com",
        "https://example.com/very/long/url/path?param=value#frag",
        "http://user:pw@example.com:8080/a%20b",
        "ftp://files.example.org/pub",
        "mailto:someone@example.com",
        "urn:isbn:0451450523",
        "http://[2001:db8::1]/",
        "custom+scheme://host/path",
        "example.com/path",
        "https://例え.jp",
        "https://example.com/ä/パス?q=値",
        "http://[::1]:8080/status",
    ],
)
def test_valid_uris(value: str) -> None:
    assert is_valid_uri(value)


@pytest.mark.parametrize(
    "value",
    [
        "",
        "not a url with spaces and no scheme",
        "https://example.com/with space",
        "https://example.com/\n",
        "https://example.com/%zz",
        "https://example.com:99999/",
        "https://example.com:port/",
        "1http://example.com",
        "http://exa<mple>.com",
        "http://x/a[b]",
        "http://[not-an-ip]/",
        "http://[::1]/#[frag]",
        "https://例え.jp/\u3000",
        "https://example.com/\u200b",
    ],
)
def test_invalid_uris(value: str) -> None:
    assert not is_valid_uri(value)


def test_link_create_accepts_camel_case() -> None:
    payload = LinkCreate.model_validate(
        {
            "originalUrl": "https://example.com",
            "expirationTime": "2030-12-31T23:59:59",
            "oneTimeUse": True,
            "maxUsage": 5,
            "maxAttempts": 10,
        }
    )
    assert payload.original_url == "https://example.com"
    assert payload.expiration_time == datetime.datetime(2030, 12, 31, 23, 59, 59, tzinfo=datetime.timezone.utc)
    assert payload.one_time_use is True
    assert payload.max_usage == 5
    assert payload.max_attempts == 10


def test_link_create_defaults() -> None:
    payload = LinkCreate(original_url="https://example.com")
    assert payload.expiration_time is None
    assert payload.one_time_use is False
    assert payload.max_usage == 0
    assert payload.max_attempts == 0


@pytest.mark.parametrize("field", ["maxUsage", "maxAttempts"])
def test_link_create_rejects_negative_limits(field: str) -> None:
    with pytest.raises(ValidationError):
        LinkCreate.model_validate({"originalUrl": "https://example.com", field: -1})


def test_link_response_serializes_camel_case() -> None:
    link = ShortLink.new("https://example.com", "abc123", now=NOW, max_usage=2)

    data = LinkResponse.from_link(link, "http://localhost:8080/t/abc123", NOW).model_dump(by_alias=True, mode="json")

    assert data["originalUrl"] == "https://example.com"
    assert data["shortUrl"] == "http://localhost:8080/t/abc123"
    assert data["shortCode"] == "abc123"
    assert data["maxUsage"] == 2
    assert data["usageCount"] == 0
    assert data["attemptCount"] == 0
    assert data["status"] == LinkStatus.VALID.value
