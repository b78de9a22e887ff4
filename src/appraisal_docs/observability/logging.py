"""Structured JSON logging with async-safe correlation IDs.

Every log line is JSON with a correlation_id that traces a single request
(one PDF run, one LLM generation) across all the async functions it touches.
"""

import json
import logging
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone

# Async-safe correlation ID — propagates through await chains automatically
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Return the current correlation ID, or empty string if not set."""
    return correlation_id.get()


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cid = correlation_id.get()
        if cid:
            log_entry["correlation_id"] = cid

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Extra fields passed via logger.info("msg", extra={...})
        for key in ("post_id", "document_id", "step", "duration_ms"):
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val

        return json.dumps(log_entry, default=str)


def setup_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Configure root logger with JSON or text format.

    Args:
        json_format: True for JSON (production), False for text (local dev).
        level: Log level string (DEBUG, INFO, WARNING, ERROR).
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    root.handlers.clear()

    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    root.addHandler(handler)

    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


@contextmanager
def timed_step(logger: logging.Logger, step: str, **fields):
    """Log a pipeline step's completion with its duration in milliseconds.

    The completion line is only emitted when the block exits normally;
    exceptions propagate to the caller untouched.
    """
    started = time.perf_counter()
    yield
    duration_ms = round((time.perf_counter() - started) * 1000, 1)
    logger.info("Step %s finished in %.1fms", step, duration_ms,
                extra={"step": step, "duration_ms": duration_ms, **fields})
