"""Stateless USSD session handling driven by the full input history."""

from .dispatch import InstantUssd, MenuEvent, MenuRegistry
from .models import MenuSkip, SessionRecord, UssdReply, UssdRequest
from .reduction import (
    EXIT_KEY,
    GO_BACK_KEY,
    HOME_KEY,
    LOAD_MORE_KEY,
    InvalidSeparatorError,
    UssdReduction,
    reduce_ussd_text,
    remove_extraneous_values,
)
from .service import UssdService, package_session_record

__all__ = [
    "reduce_ussd_text",
    "remove_extraneous_values",
    "package_session_record",
    "UssdService",
    "UssdReduction",
    "InvalidSeparatorError",
    "InstantUssd",
    "MenuEvent",
    "MenuRegistry",
    "MenuSkip",
    "SessionRecord",
    "UssdReply",
    "UssdRequest",
    "LOAD_MORE_KEY",
    "GO_BACK_KEY",
    "HOME_KEY",
    "EXIT_KEY",
]
