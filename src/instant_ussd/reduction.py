"""Reduction of the accumulated USSD input history.

The gateway resends every value the subscriber has entered in a session,
joined by a separator (e.g. ``"1*2*0*3"``). Nothing is stored between
requests, so the subscriber's navigational intent is re-derived from the full
history each time:

- ``98`` (load more) is pagination noise and is dropped from the canonical
  sequence, but kept in a second, pagination-aware sequence.
- ``0`` (go back) cancels the most recent live entry and itself.
- ``00`` (home) discards everything entered before it.
- ``000`` (exit) is only ever checked against the latest raw value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

LOAD_MORE_KEY: Final[str] = "98"
GO_BACK_KEY: Final[str] = "0"
HOME_KEY: Final[str] = "00"
EXIT_KEY: Final[str] = "000"


class InvalidSeparatorError(ValueError):
    """Raised when the configured history separator is empty or missing."""

    def __init__(self, separator: object) -> None:
        super().__init__(f"USSD separator must be a non-empty string, got {separator!r}")
        self.separator = separator


def validate_separator(separator: str | None) -> str:
    """Return ``separator`` unchanged, rejecting empty or non-string values."""
    if not isinstance(separator, str) or not separator:
        raise InvalidSeparatorError(separator)
    return separator


def split_ussd_text(text: str, separator: str) -> list[str]:
    """Split the raw history on ``separator`` and trim every value.

    An empty (or whitespace-only) history yields no values at all rather
    than a single empty string.
    """
    if not text.strip():
        return []
    return [value.strip() for value in text.split(separator)]


def strip_load_more(values: list[str]) -> list[str]:
    """Drop every load-more marker, keeping the order of the rest."""
    return [value for value in values if value != LOAD_MORE_KEY]


def remove_extraneous_values(values: list[str]) -> list[str]:
    """Apply home-reset and go-back cancellation in a single pass.

    Home clears every live value, go back pops the most recent one (and is
    absorbed when nothing is live). Neither marker is ever kept. Anything
    else, including ``98`` when it has not been stripped beforehand, is a
    plain entry.
    """
    live: list[str] = []
    for value in values:
        if value == HOME_KEY:
            live.clear()
        elif value == GO_BACK_KEY:
            if live:
                live.pop()
        else:
            live.append(value)
    return live


@dataclass(frozen=True, slots=True)
class UssdReduction:
    """Everything derived from a single raw history string."""

    text: str
    values_trimmed: tuple[str, ...]
    values_non_extraneous: tuple[str, ...]
    values_non_extraneous_with_load_more_key: tuple[str, ...]

    @property
    def is_first_request(self) -> bool:
        return len(self.text.strip()) == 0

    @property
    def latest_response(self) -> str | None:
        """Most recent raw value, or ``None`` when nothing was entered."""
        if not self.values_trimmed:
            return None
        return self.values_trimmed[-1]

    @property
    def first_response(self) -> str | None:
        """First meaningful value once navigation and pagination are removed."""
        if not self.values_non_extraneous:
            return None
        return self.values_non_extraneous[0]

    @property
    def is_exit_request(self) -> bool:
        return self.latest_response == EXIT_KEY

    @property
    def is_go_back_request(self) -> bool:
        return self.latest_response == GO_BACK_KEY

    @property
    def is_explicit_homepage_request(self) -> bool:
        return bool(self.values_trimmed) and self.latest_response == HOME_KEY


def reduce_ussd_text(text: str, separator: str) -> UssdReduction:
    """Reduce a raw history string to its canonical and pagination-aware values.

    Args:
        text: Raw history as sent by the gateway, e.g. ``"1*98*2*0"``.
        separator: Value delimiter, e.g. ``"*"``.

    Returns:
        The trimmed values, both reduced sequences, and the derived
        classification flags.

    Raises:
        InvalidSeparatorError: If ``separator`` is empty or not a string.
    """
    validate_separator(separator)
    trimmed = split_ussd_text(text, separator)
    return UssdReduction(
        text=text,
        values_trimmed=tuple(trimmed),
        values_non_extraneous=tuple(remove_extraneous_values(strip_load_more(trimmed))),
        values_non_extraneous_with_load_more_key=tuple(remove_extraneous_values(trimmed)),
    )
