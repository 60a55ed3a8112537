"""Menu dispatch: maps a session record to the next screen.

Menus are plain callables registered under a menu id. A menu receives a
``MenuEvent`` and answers with either a ``UssdReply`` (a screen to send back),
a ``MenuSkip`` (nothing to show, continue with another menu) or ``None`` (not
handled). Menus are called twice over a session's life:

- incoming: the subscriber answered the menu currently on screen
  (``is_incoming_data=True``); the menu decides where to go next;
- outgoing: the menu is being rendered (``is_incoming_data=False``).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from .config import Settings
from .models import MenuSkip, SessionRecord, UssdReply, UssdRequest
from .service import UssdService
from .reduction import LOAD_MORE_KEY
from .session import (
    clear_session,
    configure_session_limits,
    latest_menu,
    pop_previous_menu,
    track_menu,
)

NEXT_SCREEN_ERROR = "Error. Next screen could not be loaded."

MenuOutcome = UssdReply | MenuSkip | None


@dataclass
class MenuEvent:
    """What a menu handler is called with."""

    menu_id: str
    record: SessionRecord
    is_incoming_data: bool = True
    disable_tracking: bool = False
    error_message: str | None = None


MenuHandler = Callable[[MenuEvent], MenuOutcome]


def _answered_values(record: SessionRecord) -> list[str]:
    """Values already answered before the latest one.

    A trailing load-more is not in the reduced values, so everything reduced
    was answered on earlier screens.
    """
    if record.latest_response == LOAD_MORE_KEY:
        return list(record.values_non_extraneous)
    return list(record.values_non_extraneous[:-1])


class MenuChainError(RuntimeError):
    """Raised when following menu skips does not end on a screen."""

    def __init__(self, menu_id: str, reason: str) -> None:
        super().__init__(f"Menu chain broke at {menu_id!r}: {reason}")
        self.menu_id = menu_id
        self.reason = reason


class MenuRegistry:
    """Menu handlers keyed by menu id."""

    def __init__(self) -> None:
        self._handlers: dict[str, MenuHandler] = {}

    def register(self, menu_id: str, handler: MenuHandler) -> None:
        if menu_id in self._handlers:
            logger.warning(f"Replacing handler for menu {menu_id!r}")
        self._handlers[menu_id] = handler

    def menu(self, menu_id: str) -> Callable[[MenuHandler], MenuHandler]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: MenuHandler) -> MenuHandler:
            self.register(menu_id, handler)
            return handler

        return decorator

    def has(self, menu_id: str) -> bool:
        return menu_id in self._handlers

    def trigger(self, event: MenuEvent) -> MenuOutcome:
        handler = self._handlers.get(event.menu_id)
        if handler is None:
            logger.warning(f"[{event.record.session_id}] No handler for menu {event.menu_id!r}")
            return None
        return handler(event)


@dataclass
class DispatchResult:
    """The screen served for a request and the menu that produced it."""

    record: SessionRecord
    reply: UssdReply
    menu_id: str | None = None


class InstantUssd:
    """Routes each request to the right menu based on its reduced history."""

    def __init__(
        self,
        settings: Settings,
        registry: MenuRegistry,
        service: UssdService | None = None,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.service = service or UssdService(settings.separator)
        configure_session_limits(settings.session_ttl_seconds, settings.max_tracked_sessions)

    def handle(self, request: UssdRequest) -> DispatchResult:
        """Reduce the request and serve the screen it asks for.

        Resolution order:
        1. Exit (latest value ``000``)
        2. First request or explicit home (latest value ``00``)
        3. Go back (latest value ``0``)
        4. Answer to the menu currently on screen

        The menu on screen comes from the menus served to the session, or is
        rebuilt from the reduced history when nothing is tracked (restarted
        or different worker).
        """
        record = self.service.process(request)
        session_id = record.session_id or ""

        if record.is_exit_request:
            return self.exit_ussd(record)
        if record.is_first_request or record.is_explicit_homepage_request:
            return self.show_home_page(record)
        if record.is_go_back_request:
            return self.go_back(record)

        current_menu = latest_menu(session_id)
        if current_menu is None:
            current_menu = self._replay(record, _answered_values(record))
            if current_menu is None:
                logger.info(f"[{session_id}] History does not lead to a menu, starting from home")
                return self.show_home_page(record)
            logger.info(f"[{session_id}] Rebuilt menu on screen from history: {current_menu!r}")
            track_menu(session_id, current_menu)

        event = MenuEvent(current_menu, record, is_incoming_data=True)
        outcome = self.registry.trigger(event)
        if isinstance(outcome, UssdReply):
            return self._serve(event, outcome)
        if isinstance(outcome, MenuSkip):
            return self.show_next_menu(record, outcome.next_menu_id)
        return self.show_error(record)

    def show_home_page(self, record: SessionRecord) -> DispatchResult:
        clear_session(record.session_id or "")
        event = MenuEvent(self.settings.home_menu_id, record, is_incoming_data=False)
        outcome = self.registry.trigger(event)
        if isinstance(outcome, MenuSkip):
            return self.show_next_menu(record, outcome.next_menu_id)
        if isinstance(outcome, UssdReply):
            return self._serve(event, outcome)
        return self.show_error(record)

    def show_next_menu(self, record: SessionRecord, next_menu_id: str) -> DispatchResult:
        """Render ``next_menu_id``, following skips until a screen is produced."""
        try:
            event, reply = self._walk_chain(record, next_menu_id)
        except MenuChainError as e:
            logger.warning(f"[{record.session_id}] ✗ {e}")
            return self.show_error(record, NEXT_SCREEN_ERROR)
        return self._serve(event, reply)

    def go_back(self, record: SessionRecord) -> DispatchResult:
        """Re-render the menu shown before the current one.

        The re-rendered menu is not tracked again, so the subscriber can keep
        going back until the first menu of the session.
        """
        session_id = record.session_id or ""
        previous_menu = pop_previous_menu(session_id)
        disable_tracking = True
        if previous_menu is None and record.values_non_extraneous:
            previous_menu = self._replay(record, record.values_non_extraneous)
            disable_tracking = False
        if previous_menu is None:
            logger.info(f"[{session_id}] Nothing to go back to, showing home")
            return self.show_home_page(record)

        event = MenuEvent(
            previous_menu, record, is_incoming_data=False, disable_tracking=disable_tracking
        )
        outcome = self.registry.trigger(event)
        if isinstance(outcome, UssdReply):
            return self._serve(event, outcome)
        return self.show_error(record)

    def exit_ussd(self, record: SessionRecord) -> DispatchResult:
        event = MenuEvent(self.settings.exit_menu_id, record, is_incoming_data=False)
        outcome = self.registry.trigger(event)
        if isinstance(outcome, UssdReply):
            return self._serve(event, outcome.model_copy(update={"end": True}))
        return self.show_error(record)

    def show_error(self, record: SessionRecord, error_message: str | None = None) -> DispatchResult:
        """Serve the error screen and end the session."""
        event = MenuEvent(
            self.settings.error_menu_id,
            record,
            is_incoming_data=False,
            error_message=error_message,
        )
        outcome = None
        if self.registry.has(event.menu_id):
            outcome = self.registry.trigger(event)
        if not isinstance(outcome, UssdReply):
            outcome = UssdReply(message=error_message or self.settings.error_message)
        return self._serve(event, outcome.model_copy(update={"end": True}))

    def _replay(self, record: SessionRecord, values: list[str]) -> str | None:
        """Find the menu on screen after answering ``values`` from the home menu.

        Each answer is replayed as an incoming cycle with the history cut
        right after it. Returns ``None`` if the history leads nowhere, e.g. a
        screen along the way ended the session.
        """
        menu_id = self._resolve_screen(self._record_for(record, []), self.settings.home_menu_id)
        for position in range(len(values)):
            if menu_id is None:
                return None
            partial = self._record_for(record, values[: position + 1])
            outcome = self.registry.trigger(MenuEvent(menu_id, partial, is_incoming_data=True))
            if isinstance(outcome, MenuSkip):
                menu_id = self._resolve_screen(partial, outcome.next_menu_id)
            elif not isinstance(outcome, UssdReply) or outcome.end:
                return None
        return menu_id

    def _resolve_screen(self, record: SessionRecord, menu_id: str) -> str | None:
        try:
            event, reply = self._walk_chain(record, menu_id)
        except MenuChainError:
            return None
        return None if reply.end else event.menu_id

    def _record_for(self, record: SessionRecord, values: list[str]) -> SessionRecord:
        request = UssdRequest(
            phone_number=record.phone_number,
            session_id=record.session_id,
            service_code=record.service_code,
            text=self.service.separator.join(values),
        )
        return self.service.process(request)

    def _walk_chain(self, record: SessionRecord, menu_id: str) -> tuple[MenuEvent, UssdReply]:
        # The first menu is not a skip, so N skips take N + 1 triggers
        for _ in range(self.settings.max_menu_hops + 1):
            event = MenuEvent(menu_id, record, is_incoming_data=False)
            outcome = self.registry.trigger(event)
            if isinstance(outcome, UssdReply):
                return event, outcome
            if not isinstance(outcome, MenuSkip):
                raise MenuChainError(menu_id, "menu produced no screen")
            logger.debug(f"[{record.session_id}] Menu {menu_id!r} skipped to {outcome.next_menu_id!r}")
            menu_id = outcome.next_menu_id
        raise MenuChainError(menu_id, f"more than {self.settings.max_menu_hops} skips")

    def _serve(self, event: MenuEvent, reply: UssdReply) -> DispatchResult:
        session_id = event.record.session_id or ""
        if reply.end:
            clear_session(session_id)
        elif not event.disable_tracking:
            track_menu(session_id, event.menu_id)
        logger.info(f"[{session_id}] ← Serving menu {event.menu_id!r} (end={reply.end})")
        return DispatchResult(record=event.record, reply=reply, menu_id=event.menu_id)
