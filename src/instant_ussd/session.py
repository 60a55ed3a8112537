"""Tracking of the menus served to each USSD session.

The history reduction itself is stateless; this record is a shortcut to the
menu on screen and lets a go-back request find the menu shown before it.
Abandoned sessions are common (timeouts, dropped calls), so entries expire
after a period without requests and the number of sessions is capped.
"""

import threading
import time
from collections import OrderedDict

DEFAULT_SESSION_TTL_SECONDS = 180.0
DEFAULT_MAX_TRACKED_SESSIONS = 10_000

# In-memory mapping from session ID to (last seen, menu ids served oldest
# first), least recently seen first. Thread-safe via a shared lock.
_menus_served: OrderedDict[str, tuple[float, list[str]]] = OrderedDict()
_menus_lock = threading.Lock()
_session_ttl_seconds = DEFAULT_SESSION_TTL_SECONDS
_max_tracked_sessions = DEFAULT_MAX_TRACKED_SESSIONS
_clock = time.monotonic


def configure_session_limits(
    ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
    max_sessions: int = DEFAULT_MAX_TRACKED_SESSIONS,
) -> None:
    """Set how long idle sessions are kept and how many are kept at most."""
    global _session_ttl_seconds, _max_tracked_sessions
    with _menus_lock:
        _session_ttl_seconds = ttl_seconds
        _max_tracked_sessions = max(1, max_sessions)


def _prune(now: float) -> None:
    # Caller holds _menus_lock
    while _menus_served:
        session_id, (last_seen, _) = next(iter(_menus_served.items()))
        if now - last_seen <= _session_ttl_seconds and len(_menus_served) <= _max_tracked_sessions:
            break
        del _menus_served[session_id]


def _live_menus(session_id: str) -> list[str] | None:
    # Caller holds _menus_lock
    _prune(_clock())
    entry = _menus_served.get(session_id)
    return entry[1] if entry else None


def track_menu(session_id: str, menu_id: str) -> None:
    """Record that ``menu_id`` was just shown to the session.

    Showing the same menu twice in a row (e.g. a paginated list) is recorded
    once.
    """
    with _menus_lock:
        now = _clock()
        served = _menus_served.pop(session_id, (now, []))[1]
        if not served or served[-1] != menu_id:
            served.append(menu_id)
        _menus_served[session_id] = (now, served)
        _prune(now)


def latest_menu(session_id: str) -> str | None:
    """Return the menu currently shown to the session, if any."""
    with _menus_lock:
        served = _live_menus(session_id)
        return served[-1] if served else None


def pop_previous_menu(session_id: str) -> str | None:
    """Drop the current menu and return the one shown before it.

    Returns ``None`` when there is no earlier menu; the current menu is
    dropped either way.
    """
    with _menus_lock:
        served = _live_menus(session_id)
        if not served:
            return None
        served.pop()
        return served[-1] if served else None


def menus_served(session_id: str) -> list[str]:
    """Return a copy of the menus served to the session, oldest first."""
    with _menus_lock:
        return list(_live_menus(session_id) or [])


def tracked_session_count() -> int:
    """Number of sessions currently tracked, expired ones excluded."""
    with _menus_lock:
        _prune(_clock())
        return len(_menus_served)


def clear_session(session_id: str) -> None:
    """Forget the menus served to a single session."""
    with _menus_lock:
        _menus_served.pop(session_id, None)


def clear_menus_served() -> None:
    """Forget every session. Useful for testing."""
    with _menus_lock:
        _menus_served.clear()
