"""Structured logging with run correlation and per-phase timings.

Every record emitted after ``configure_structured_logging`` carries the
current ``run_id`` and ``phase``. A run moves through the phases below;
``phase_scope`` tags records with the phase and accumulates its wall time so
the run report can show where a search spent its time.
"""

from __future__ import annotations

import contextvars
import logging
import time
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | run_id=%(run_id)s | phase=%(phase)s | "
    "%(name)s | %(message)s"
)

PHASE_VALIDATE = "validate"
PHASE_INDEX = "index"
PHASE_COMPOUNDS = "compounds"
PHASE_SEARCH = "search"

NO_CONTEXT = "-"

_RUN_ID_VAR: contextvars.ContextVar[str] = contextvars.ContextVar(
    "doxysearch_run_id", default=NO_CONTEXT
)
_PHASE_VAR: contextvars.ContextVar[str] = contextvars.ContextVar(
    "doxysearch_phase", default=NO_CONTEXT
)
_TIMINGS_VAR: contextvars.ContextVar[Optional[dict[str, float]]] = contextvars.ContextVar(
    "doxysearch_phase_timings", default=None
)

logger = logging.getLogger(__name__)


class RunContextFilter(logging.Filter):
    """Stamp every log record with the current run id and phase."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _RUN_ID_VAR.get()
        record.phase = _PHASE_VAR.get()
        return True


def configure_structured_logging(level: int = logging.INFO) -> None:
    """Configure root logging so every record carries run/phase fields.

    Safe to call more than once; existing handlers are re-formatted and get
    a single ``RunContextFilter``.
    """
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        root_logger.setLevel(level)
        formatter = logging.Formatter(LOG_FORMAT)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)
    for handler in root_logger.handlers:
        if not any(isinstance(f, RunContextFilter) for f in handler.filters):
            handler.addFilter(RunContextFilter())


def set_run_id(run_id: str | None = None) -> str:
    """Start a run: set its correlation id and clear phase timings.

    Args:
        run_id: Id to use; a 12-character hex id is generated when omitted.

    Returns:
        The id now attached to log records.
    """
    value = run_id or uuid.uuid4().hex[:12]
    _RUN_ID_VAR.set(value)
    _TIMINGS_VAR.set({})
    return value


def get_run_id() -> str:
    return _RUN_ID_VAR.get()


def get_phase() -> str:
    return _PHASE_VAR.get()


def phase_timings() -> dict[str, float]:
    """Milliseconds spent in each phase of the current run, in entry order."""
    return dict(_TIMINGS_VAR.get() or {})


@contextmanager
def phase_scope(phase: str) -> Iterator[None]:
    """Attach ``phase`` to records emitted inside the block and time it.

    Re-entering a phase adds to its total. The previous phase is restored on
    exit, including when the block raises.
    """
    timings = _TIMINGS_VAR.get()
    if timings is None:
        timings = {}
        _TIMINGS_VAR.set(timings)
    token = _PHASE_VAR.set(phase)
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        timings[phase] = timings.get(phase, 0.0) + elapsed_ms
        logger.debug("Phase %s finished in %.2fms", phase, elapsed_ms)
        _PHASE_VAR.reset(token)
