"""Error taxonomy for link creation and resolution.

Every error carries the HTTP status it maps to so the transport layer can
translate it with a single exception handler.
"""

__all__ = [
    "TinyUrlError",
    "InvalidUrl",
    "NotFound",
    "Expired",
    "AttemptsExceeded",
    "GenerationExhausted",
    "ShortCodeConflict",
]


class TinyUrlError(Exception):
    status_code: int = 500
    default_message: str = "Unexpected tiny URL error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class InvalidUrl(TinyUrlError):
    status_code = 400

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Invalid URL format: {url}")


class NotFound(TinyUrlError):
    status_code = 404

    def __init__(self, short_code: str) -> None:
        self.short_code = short_code
        super().__init__(f"Tiny URL not found for code: {short_code}")


class Expired(TinyUrlError):
    status_code = 410

    def __init__(self, short_code: str) -> None:
        self.short_code = short_code
        super().__init__("The tiny URL has expired or reached its usage limit")


class AttemptsExceeded(TinyUrlError):
    status_code = 429

    def __init__(self, short_code: str) -> None:
        self.short_code = short_code
        super().__init__("Maximum number of attempts exceeded for this URL")


class GenerationExhausted(TinyUrlError):
    status_code = 500

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Failed to generate unique code after {attempts} attempts")


class ShortCodeConflict(TinyUrlError):
    """Raised by a store when an insert hits the short_code unique constraint."""

    status_code = 409

    def __init__(self, short_code: str) -> None:
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' collision detected")
