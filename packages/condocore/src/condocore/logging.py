"""
Logging setup

Configures the root logger once per process. Modules log through
``logging.getLogger(__name__)`` and attach context with ``extra={...}``.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from condocore.settings import get_settings

# Attributes present on every LogRecord; anything else came in through `extra`.
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}

_configured = False


def _extra_fields(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per line, including `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_extra_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ContextFormatter(logging.Formatter):
    """Plain text formatter that appends `extra` fields as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _extra_fields(record)
        if extras:
            context = " ".join(f"{key}={value}" for key, value in extras.items())
            line = f"{line} [{context}]"
        return line


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """
    Configure root logging.

    Safe to call more than once; only the first call installs handlers.
    """
    global _configured
    if _configured:
        return

    settings = get_settings()
    level = level or settings.LOG_LEVEL
    json_output = settings.LOG_JSON if json_output is None else json_output

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            ContextFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())

    # Third-party clients are chatty at INFO
    for noisy in ("httpx", "httpcore", "twilio.http_client", "anthropic", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _configured = True
