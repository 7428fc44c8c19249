"""ISBN-13 normalization, checksum validation, and canonical formatting.

All helpers are pure. Callers pass raw user input (digits, hyphens, spaces);
``normalize_isbn`` reduces it to the digit sequence used for identity and
checksum purposes, while ``format_isbn`` produces the canonical hyphenated
text stored on ``Book.isbn``.
"""

from __future__ import annotations

import re

from .errors import ChecksumError, LengthError

ISBN_LENGTH = 13
# Display grouping XXX-X-XXX-XXXXX-X
_GROUPS = (3, 1, 3, 5, 1)
_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_isbn(text: str) -> str:
    """Strip every non-digit character. Length is not checked."""
    return _NON_DIGITS.sub("", str(text or ""))


def check_digit(prefix: str) -> int:
    """Compute the ISBN-13 check digit for a 12-digit prefix.

    Weights alternate 1 and 3 starting with 1 at position 0.
    """
    digits = normalize_isbn(prefix)
    if len(digits) != ISBN_LENGTH - 1:
        raise LengthError(
            f"ISBN prefix must contain {ISBN_LENGTH - 1} digits, got {len(digits)}."
        )
    total = sum(int(ch) * (1 if idx % 2 == 0 else 3) for idx, ch in enumerate(digits))
    return (10 - total % 10) % 10


def validate_isbn(text: str) -> str:
    """Validate an ISBN-13 and return its 13-digit form.

    Raises:
        LengthError: Fewer or more than 13 digits after normalization.
        ChecksumError: The 13th digit does not match the computed check digit.
    """
    digits = normalize_isbn(text)
    if len(digits) != ISBN_LENGTH:
        raise LengthError(f"ISBN must contain {ISBN_LENGTH} digits.")
    if int(digits[-1]) != check_digit(digits[:-1]):
        raise ChecksumError("Invalid ISBN checksum.")
    return digits


def is_valid_isbn(text: str) -> bool:
    try:
        validate_isbn(text)
    except (LengthError, ChecksumError):
        return False
    return True


def format_isbn(text: str) -> str:
    """Return the canonical ``XXX-X-XXX-XXXXX-X`` grouping.

    Input that does not reduce to exactly 13 digits is returned unchanged so
    partially typed values can be echoed back while the user is still typing.
    """
    digits = normalize_isbn(text)
    if len(digits) != ISBN_LENGTH:
        return text
    parts = []
    start = 0
    for size in _GROUPS:
        parts.append(digits[start : start + size])
        start += size
    return "-".join(parts)


__all__ = [
    "ISBN_LENGTH",
    "check_digit",
    "format_isbn",
    "is_valid_isbn",
    "normalize_isbn",
    "validate_isbn",
]
