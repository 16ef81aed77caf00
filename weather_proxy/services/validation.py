"""Location input validation and sanitization."""

import re
from typing import Any, Optional

from pydantic import BaseModel

MAX_LOCATION_LENGTH = 100

# Letters, digits, spaces, hyphen, apostrophe, period, comma, parentheses
LOCATION_PATTERN = re.compile(r"[A-Za-z0-9 \-'.,()]+")

REASON_REQUIRED = "required"
REASON_EMPTY = "empty"
REASON_TOO_LONG = "too long"
REASON_INVALID_CHARACTERS = "invalid characters"

_REASON_MESSAGES = {
    REASON_REQUIRED: "Location is required and must be a string",
    REASON_EMPTY: "Location cannot be empty",
    REASON_TOO_LONG: f"Location name too long (max {MAX_LOCATION_LENGTH} characters)",
    REASON_INVALID_CHARACTERS: "Location contains invalid characters",
}


class LocationValidation(BaseModel):
    """Result of validating a raw location string.

    Attributes:
        valid: Whether the location may be forwarded upstream
        sanitized: Trimmed location, set only when valid
        reason: One of the REASON_* codes, set only when rejected
    """

    valid: bool
    sanitized: Optional[str] = None
    reason: Optional[str] = None

    @property
    def message(self) -> str:
        """User-facing explanation for a rejection."""
        if self.reason is None:
            return ""
        return _REASON_MESSAGES[self.reason]


def _reject(reason: str) -> LocationValidation:
    return LocationValidation(valid=False, reason=reason)


def validate_location(raw: Any) -> LocationValidation:
    """Sanitize a raw location and accept or reject it.

    Checks run in a fixed order so a single reason is reported:
    presence, emptiness, length, then the character allow-list.

    Args:
        raw: Untrusted value from the query string

    Returns:
        LocationValidation with the trimmed location or a rejection reason
    """
    if raw is None or not isinstance(raw, str):
        return _reject(REASON_REQUIRED)

    sanitized = raw.strip()

    if not sanitized:
        return _reject(REASON_EMPTY)

    if len(sanitized) > MAX_LOCATION_LENGTH:
        return _reject(REASON_TOO_LONG)

    if not LOCATION_PATTERN.fullmatch(sanitized):
        return _reject(REASON_INVALID_CHARACTERS)

    return LocationValidation(valid=True, sanitized=sanitized)
