import json
import logging
import logging.config
from datetime import date, datetime, timezone
from typing import Any


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured scheduler and request logs."""

    RESERVED = {
        "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
        "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
        "created", "msecs", "relativeCreated", "thread", "threadName", "processName",
        "process", "message", "asctime", "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in self.RESERVED and not key.startswith("_"):
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _render(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple, set)):
        return ",".join(str(v) for v in value)
    return str(value)


def log_event(logger: logging.Logger, event: str, level: int = logging.INFO, **fields: Any) -> None:
    """
    Emit a ``event key=value ...`` line and attach the same fields as record
    extras so the JSON formatter exposes them as top-level keys.
    """
    parts = [event] + [f"{k}={_render(v)}" for k, v in fields.items()]
    logger.log(level, " ".join(parts), extra={"event": event, **fields})


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    formatter_name = "json" if log_format.lower() == "json" else "standard"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
                },
                "json": {
                    "()": "plantsched.utils.logging.JsonFormatter",
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": formatter_name,
                    "level": log_level.upper(),
                }
            },
            "loggers": {
                "plantsched": {"level": log_level.upper(), "propagate": True},
                "sqlalchemy.engine": {"level": "WARNING", "propagate": True},
            },
            "root": {
                "handlers": ["default"],
                "level": log_level.upper(),
            },
        }
    )
