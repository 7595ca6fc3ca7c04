"""Structured logging for the futures client.

Every record emitted while one HTTP call is in flight (the transport's own
records and the rate ledger's) carries the same ``call_id``. API keys,
secrets and request signatures are redacted before a record is formatted.
The library never installs handlers on import; applications opt in with
``configure_logging()``.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from binance_futures.core.config import LogSettings, settings

_call_id_var: ContextVar[str | None] = ContextVar("call_id", default=None)

REDACTED = "[REDACTED]"

# Matched case-insensitively against extra keys and nested mapping keys
SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        "api_key",
        "apikey",
        "x-mbx-apikey",
        "secret",
        "secret_key",
        "binance_api_key",
        "binance_secret_key",
        "signature",
        "authorization",
    }
)

# Standard LogRecord attributes; anything else on a record came from ``extra``
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "call_id"}


def get_call_id() -> str | None:
    """Return the id of the HTTP call in progress, if any."""
    return _call_id_var.get()


@contextmanager
def call_context(call_id: str | None = None) -> Iterator[str]:
    """Bind a call id to every record logged inside the block.

    Nested blocks restore the outer id on exit.
    """
    token = _call_id_var.set(call_id or uuid.uuid4().hex[:16])
    try:
        yield _call_id_var.get()
    finally:
        _call_id_var.reset(token)


def _redact(value: Any, sensitive_keys: frozenset[str]) -> Any:
    if isinstance(value, Mapping):
        return {
            k: REDACTED if str(k).lower() in sensitive_keys else _redact(v, sensitive_keys)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(_redact(v, sensitive_keys) for v in value)
    return value


def _extras(record: LogRecord, sensitive_keys: frozenset[str]) -> dict[str, Any]:
    """Redacted ``extra`` fields of a record."""
    return {
        key: REDACTED if key.lower() in sensitive_keys else _redact(value, sensitive_keys)
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class CallIdFilter(logging.Filter):
    """Stamp the current call id onto records that do not carry one."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "call_id", None) is None:
            call_id = get_call_id()
            if call_id:
                record.call_id = call_id
        return True


class SensitiveDataFilter(logging.Filter):
    """Redact credentials in ``extra`` fields, including nested headers."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT))

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in _extras(record, self.sensitive_keys).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, call_id, extras."""

    def __init__(self, *, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT))

    def format(self, record: LogRecord) -> str:  # noqa: D401
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        call_id = getattr(record, "call_id", None) or get_call_id()
        if call_id:
            data["call_id"] = call_id
        data.update(_extras(record, self.sensitive_keys))
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    file_path = Path(log_settings.file_path or "logs/binance_futures.log")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        file_path,
        maxBytes=log_settings.max_bytes,
        backupCount=log_settings.backup_count,
        encoding="utf-8",
    )


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install one redacting, call-correlated handler on the root logger.

    Args:
        log_settings: Optional log settings; defaults to the global settings.
    """
    cfg = log_settings or settings.log
    level = getattr(logging, cfg.level.upper(), logging.INFO)

    handler = _build_handler(cfg)
    handler.addFilter(CallIdFilter())
    handler.addFilter(SensitiveDataFilter())
    if cfg.format.lower() == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # httpx logs every request at INFO; the transport already does
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
