"""Pydantic models for USSD requests, session records and replies."""

from typing import Any

from pydantic import BaseModel, Field

# --- Request Models ---


class UssdRequest(BaseModel):
    """A single gateway callback.

    Field names follow the gateway's camelCase payload; snake_case is
    accepted as well. Nothing here is validated beyond its type, the values
    are passed through to the session record as received.
    """

    phone_number: str | None = Field(default=None, alias="phoneNumber")
    session_id: str | None = Field(default=None, alias="sessionId")
    service_code: str | None = Field(default=None, alias="serviceCode")
    text: str | None = None

    model_config = {"extra": "allow", "populate_by_name": True}


# --- Session Record ---


class SessionRecord(BaseModel):
    """The reduced view of a request handed to the menu dispatcher."""

    phone_number: str | None = None
    session_id: str | None = None
    service_code: str | None = None
    text: str | None = None
    values_trimmed: list[str] = Field(default_factory=list)
    values_non_extraneous: list[str] = Field(default_factory=list)
    values_non_extraneous_with_load_more_key: list[str] = Field(default_factory=list)
    latest_response: str | None = None
    first_response: str | None = None

    is_first_request: bool = False
    is_exit_request: bool = False
    is_go_back_request: bool = False
    is_explicit_homepage_request: bool = False


# --- Dispatch Outcomes ---


class UssdReply(BaseModel):
    """A screen sent back to the subscriber."""

    message: str
    end: bool = False

    def render(self) -> str:
        """Render using the gateway's ``CON``/``END`` prefix convention."""
        prefix = "END" if self.end else "CON"
        return f"{prefix} {self.message}"


class MenuSkip(BaseModel):
    """Answer from a menu that has nothing to show and defers to another menu."""

    next_menu_id: str


# --- Log Entry Model ---


class LogEntry(BaseModel):
    """Schema for JSONL exchange log entries."""

    timestamp: str  # ISO 8601 UTC
    session_id: str
    menu_id: str | None = None
    record: dict[str, Any]
    reply: dict[str, Any]
