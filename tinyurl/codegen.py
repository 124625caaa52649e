"""Short-code generation with bounded collision retry.

Codes are drawn uniformly from a 62-symbol alphabet with nanoid, which reads
its randomness from ``os.urandom``. Uniqueness is checked against the store
one candidate at a time.

Flow Diagram — generate_unique_code()
=====================================
::
    attempt = 0
        │
        ▼
    ┌──────────────┐   exists?   ┌──────────────┐
    │ draw(length) │ ──────────▶ │ store lookup │
    └──────────────┘             └──────┬───────┘
        ▲                    yes │      │ no
        │  attempt < max  ◀──────┘      ▼
        │                          return code
        └── attempt == max ──▶ GenerationExhausted
"""

import logging
from collections.abc import Awaitable, Callable

from nanoid import generate

from tinyurl.exceptions import GenerationExhausted

__all__ = ["ALPHABET", "DEFAULT_MAX_ATTEMPTS", "generate_short_code", "generate_unique_code"]

logger = logging.getLogger("tinyurl.codegen")

ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
DEFAULT_MAX_ATTEMPTS = 10


def generate_short_code(length: int = 6) -> str:
    assert isinstance(length, int) and length > 0, f"length must be a positive integer, got {length!r}"
    return generate(ALPHABET, length)


async def generate_unique_code(
    exists: Callable[[str], Awaitable[bool]],
    length: int = 6,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    draw: Callable[[int], str] = generate_short_code,
) -> str:
    """Return a code of ``length`` symbols that ``exists`` reports as free.

    Raises:
        GenerationExhausted: every one of ``max_attempts`` candidates collided.
    """
    assert max_attempts > 0, f"max_attempts must be positive, got {max_attempts!r}"

    attempt = 0
    while attempt < max_attempts:
        attempt += 1
        candidate = draw(length)
        if not await exists(candidate):
            logger.debug(f"Generated short code {candidate} on attempt {attempt}")
            return candidate
        logger.debug(f"Short code collision on {candidate} (attempt {attempt}/{max_attempts})")

    raise GenerationExhausted(max_attempts)
