"""Logging utilities with JSON formatting, redaction, and request correlation.

Log lines are single JSON objects. Each one carries the request id and,
once the bearer token is resolved, the id of the authenticated account.
Credentials and personal data (passwords, tokens, email addresses) are
scrubbed from structured fields and from the rendered message.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from app.core.config import LogSettings, settings

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
_user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)

REDACTED = "[REDACTED]"

SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        "authorization",
        "token",
        "session_token",
        "secret",
        "password",
        "password_old",
        "password_new",
        "password_confirm",
        "password_hash",
        "cookie",
        "set-cookie",
        "email",
        "connection",
        "db_connection",
    }
)

_EMAIL_RE = re.compile(r"[^@\s\"']+@[^@\s\"']+\.[A-Za-z]{2,}")

# Attributes every LogRecord has; anything else arrived through ``extra``.
_RECORD_ATTRS = frozenset(vars(LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}


def set_request_id(request_id: str | None) -> None:
    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def clear_request_id() -> None:
    """Clear request-scoped context (request id and authenticated user)."""

    _request_id_var.set(None)
    _user_id_var.set(None)


def set_user_id(user_id: str | None) -> None:
    """Remember which authenticated account is making the current request."""

    _user_id_var.set(user_id)


def get_user_id() -> str | None:
    return _user_id_var.get()


def hash_identifier(value: str) -> str:
    """Short, stable digest of an identifier so it can be logged safely.

    Examples:
        >>> len(hash_identifier("127.0.0.1"))
        16
    """

    return hashlib.sha256(value.encode()).hexdigest()[:16]


class Redactor:
    """Replaces values of sensitive keys, recursing into dicts and lists."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        keys = SENSITIVE_KEYS_DEFAULT if sensitive_keys is None else sensitive_keys
        self.sensitive_keys = frozenset(k.lower() for k in keys)

    def is_sensitive(self, key: Any) -> bool:
        return str(key).lower() in self.sensitive_keys

    def scrub(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {k: REDACTED if self.is_sensitive(k) else self.scrub(v) for k, v in value.items()}
        if isinstance(value, (list, tuple, set)):
            return [self.scrub(v) for v in value]
        if isinstance(value, str):
            return _EMAIL_RE.sub(REDACTED, value)
        return value

    def extras(self, record: LogRecord) -> dict[str, Any]:
        """Return the record's ``extra`` fields with sensitive values replaced."""

        return {
            key: REDACTED if self.is_sensitive(key) else self.scrub(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }


class RequestContextFilter(logging.Filter):
    """Attach request_id and user_id from context when absent on the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for attr, var in (("request_id", _request_id_var), ("user_id", _user_id_var)):
            if getattr(record, attr, None) is None and var.get():
                setattr(record, attr, var.get())
        return True


class SensitiveDataFilter(logging.Filter):
    """Redact sensitive fields on the record so every formatter sees clean data."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.redactor = Redactor(sensitive_keys)

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in self.redactor.extras(record).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, extras."""

    def __init__(self, *, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.redactor = Redactor(sensitive_keys)

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": self.redactor.scrub(record.getMessage()),
        }
        payload.update(self.redactor.extras(record))
        payload.setdefault("request_id", get_request_id())
        if payload["request_id"] is None:
            del payload["request_id"]

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    """Stdout by default; a (rotating) file when ``LOG_OUTPUT=file``."""

    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    path = Path(log_settings.file_path or "logs/toko-api.log")
    path.parent.mkdir(parents=True, exist_ok=True)
    if not log_settings.max_bytes:
        return logging.FileHandler(path, encoding="utf-8")
    return RotatingFileHandler(
        path,
        maxBytes=log_settings.max_bytes,
        backupCount=log_settings.backup_count,
        encoding="utf-8",
    )


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install a single redacting handler on the root logger.

    Args:
        log_settings: Defaults to ``settings.log``.
    """

    cfg = log_settings or settings.log

    handler = _build_handler(cfg)
    handler.addFilter(RequestContextFilter())
    handler.addFilter(SensitiveDataFilter())
    if cfg.format.lower() == "plain":
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
    else:
        handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))

    # uvicorn installs its own handlers; stop its records reaching root twice.
    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).propagate = False
    # pymongo's command/heartbeat chatter is rarely useful at INFO
    logging.getLogger("pymongo").setLevel(max(logging.WARNING, root.level))
