import json
import logging
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional


# Whatever a bare LogRecord carries is plumbing; everything else came in through ``extra``.
_RESERVED_KEYS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line: UTC timestamp, level, logger, event and its fields."""

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            return stamp.strftime(datefmt)
        return stamp.isoformat(timespec="milliseconds")

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
        }
        fields = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_KEYS and not key.startswith("_")
        }
        event = fields.pop("event", None) or message
        payload["event"] = event
        if message != event:
            payload["message"] = message
        if fields:
            payload["fields"] = fields
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def init_logging(level: str = "INFO", stream: Optional[IO[str]] = None) -> None:
    """Route the root logger through the structured formatter."""
    log_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    logging.basicConfig(level=log_level, handlers=[handler], force=True)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name if name else "leverage_calc")


def log_event(
    logger: logging.Logger,
    event: str,
    *,
    level: int = logging.INFO,
    exc_info: bool = False,
    **fields: Any,
) -> None:
    """Emit ``event`` with ``fields`` attached as structured extras."""
    if not logger.isEnabledFor(level):
        return
    logger.log(level, event, exc_info=exc_info, extra={"event": event, **fields})
