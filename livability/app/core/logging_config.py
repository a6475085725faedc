"""
Structured logging configuration.

Two output shapes, picked by ENVIRONMENT:

    production   one JSON object per line (JSONFormatter)
    otherwise    coloured single-line console output (PrettyFormatter)

Request-scoped fields (request_id, client_ip, endpoint, city …) live in a
ContextVar bound by RequestLoggingMiddleware and are attached to every
record emitted while the request is being served, including the ones
written deep inside the upstream clients.

Usage:
    from livability.app.core.logging_config import setup_logging, get_logger

    setup_logging(settings)
    logger = get_logger(__name__)
    logger.warning("GDP lookup failed", extra={"upstream": "worldbank"})
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from livability.app.core.config import Settings

_request_context: ContextVar[Dict[str, Any]] = ContextVar("request_context", default={})

# Record attributes (passed via ``extra=``) that the JSON output keeps.
_EXTRA_FIELDS = (
    "city", "country", "upstream", "lat", "lon", "risk_score",
    "comfort_index", "duration_ms", "status_code", "endpoint",
)

_NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


# ── Request context ──

def bind_request_context(**fields: Any) -> Token:
    """Replace the request context; keep the token to restore it later."""
    return _request_context.set(dict(fields))


def reset_request_context(token: Optional[Token] = None) -> None:
    if token is None:
        _request_context.set({})
    else:
        _request_context.reset(token)


def get_request_context() -> Dict[str, Any]:
    return _request_context.get()


def _record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {key: getattr(record, key) for key in _EXTRA_FIELDS if hasattr(record, key)}


# ── Formatters ──

class JSONFormatter(logging.Formatter):
    """One JSON document per record, for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        context = get_request_context()
        if context:
            entry["context"] = context
        entry.update(_record_extras(record))

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str, ensure_ascii=False)


class PrettyFormatter(logging.Formatter):
    """``12:04:11 WARNING  [3f9c… Lisbon] module: message`` with ANSI colours."""

    LEVEL_COLOURS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelno, "")
        line = (
            f"{colour}{self.formatTime(record, '%H:%M:%S')} {record.levelname:<8}{self.RESET}"
            f"{self._context_tag()} {record.name}: {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line

    @staticmethod
    def _context_tag() -> str:
        context = get_request_context()
        parts = [str(context[key])[:8] if key == "request_id" else str(context[key])
                 for key in ("request_id", "city") if context.get(key)]
        return f" [{' '.join(parts)}]" if parts else ""


# ── Setup ──

def setup_logging(settings: Settings) -> None:
    """Install a single stdout handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if settings.is_production else PrettyFormatter())
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
