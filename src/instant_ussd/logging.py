"""Logging setup and JSONL exchange logs for the USSD gateway."""

import asyncio
import json
import re
import sys
import threading
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger

from .config import Settings
from .dispatch import DispatchResult
from .models import LogEntry

_session_locks: dict[str, asyncio.Lock] = {}
_session_locks_guard = threading.Lock()


def sanitize_session_id(session_id: str | None) -> str:
    """Sanitize session ID to prevent path traversal.

    Args:
        session_id: Raw session identifier, possibly missing.

    Returns:
        Sanitized session ID containing only alphanumerics, underscores and
        hyphens.
    """
    sanitized = re.sub(r"[^a-zA-Z0-9_-]", "_", session_id or "")
    return sanitized or "unknown"


def configure_logging(verbose: bool) -> None:
    """Configure Loguru logging level and sinks.

    Args:
        verbose: Enable DEBUG logging when True, otherwise INFO.
    """
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sys.stderr, level=level)


def get_log_path(settings: Settings, session_id: str | None) -> Path:
    """Get the exchange log path for a session.

    Args:
        settings: Settings containing log_root.
        session_id: The session identifier (will be sanitized).

    Returns:
        Path to the JSONL log file.
    """
    date_folder = datetime.now(UTC).strftime("%Y-%m-%d")
    return settings.log_root / date_folder / f"{sanitize_session_id(session_id)}.jsonl"


def _get_session_lock(safe_session_id: str) -> asyncio.Lock:
    with _session_locks_guard:
        lock = _session_locks.get(safe_session_id)
        if lock is None:
            lock = asyncio.Lock()
            _session_locks[safe_session_id] = lock
        return lock


def _build_entry(result: DispatchResult) -> LogEntry:
    return LogEntry(
        timestamp=datetime.now(UTC).isoformat(),
        session_id=sanitize_session_id(result.record.session_id),
        menu_id=result.menu_id,
        record=result.record.model_dump(mode="json"),
        reply=result.reply.model_dump(mode="json"),
    )


def _write_entry(log_path: Path, entry: LogEntry) -> None:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.model_dump(), ensure_ascii=False) + "\n")


async def append_exchange_async(settings: Settings, result: DispatchResult) -> None:
    """Append a served exchange to the session's JSONL file (async-safe).

    Args:
        settings: Gateway settings.
        result: The dispatched request and the screen served for it.

    Raises:
        IOError: If the log write fails.
    """
    entry = _build_entry(result)
    log_path = get_log_path(settings, result.record.session_id)
    lock = _get_session_lock(entry.session_id)

    try:
        async with lock:
            _write_entry(log_path, entry)
        logger.debug(f"Logged exchange to {log_path}")
    except OSError as e:
        logger.error(f"Failed to write exchange to {log_path}: {e}")
        raise IOError(f"Log write failed: {e}") from e


def append_exchange(settings: Settings, result: DispatchResult) -> None:
    """Append a served exchange to the session's JSONL file.

    Args:
        settings: Gateway settings.
        result: The dispatched request and the screen served for it.

    Raises:
        IOError: If the log write fails.
    """
    entry = _build_entry(result)
    log_path = get_log_path(settings, result.record.session_id)

    try:
        _write_entry(log_path, entry)
        logger.debug(f"Logged exchange to {log_path}")
    except OSError as e:
        logger.error(f"Failed to write exchange to {log_path}: {e}")
        raise IOError(f"Log write failed: {e}") from e
