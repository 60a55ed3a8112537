"""Turns gateway requests into session records."""

from loguru import logger

from .models import SessionRecord, UssdRequest
from .reduction import UssdReduction, reduce_ussd_text, validate_separator


def package_session_record(request: UssdRequest, reduction: UssdReduction) -> SessionRecord:
    """Merge the transport fields with the reduction of their history.

    Transport fields are copied as received, ``None`` included.
    """
    return SessionRecord(
        phone_number=request.phone_number,
        session_id=request.session_id,
        service_code=request.service_code,
        text=request.text,
        values_trimmed=list(reduction.values_trimmed),
        values_non_extraneous=list(reduction.values_non_extraneous),
        values_non_extraneous_with_load_more_key=list(
            reduction.values_non_extraneous_with_load_more_key
        ),
        latest_response=reduction.latest_response,
        first_response=reduction.first_response,
        is_first_request=reduction.is_first_request,
        is_exit_request=reduction.is_exit_request,
        is_go_back_request=reduction.is_go_back_request,
        is_explicit_homepage_request=reduction.is_explicit_homepage_request,
    )


class UssdService:
    """Reduces request histories with a fixed separator.

    The separator is checked once, here, so a misconfiguration fails at
    startup instead of silently collapsing every history into one value.
    """

    def __init__(self, separator: str) -> None:
        self.separator = validate_separator(separator)

    def reduce(self, text: str | None) -> UssdReduction:
        # A missing text is the same as an empty history
        return reduce_ussd_text(text or "", self.separator)

    def process(self, request: UssdRequest) -> SessionRecord:
        """Reduce the request's history and package it into a session record."""
        reduction = self.reduce(request.text)
        record = package_session_record(request, reduction)
        logger.debug(
            f"[{record.session_id}] Reduced {len(record.values_trimmed)} values "
            f"to {record.values_non_extraneous} (latest={record.latest_response!r})"
        )
        return record
