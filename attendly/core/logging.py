"""
JSON logging for the API process and the seeding script.

Every record gets the id of the request it was emitted under, so a check-in
and the badge task it spawned can be followed through the log.
"""
import logging
from contextvars import ContextVar
from datetime import datetime, timezone

from pythonjsonlogger import jsonlogger

# Set by CorrelationIdMiddleware for the lifetime of a request.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_FORMAT = "%(timestamp)s %(levelname)s %(name)s %(message)s"
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine")


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or None
        record.timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        return True


def _json_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(jsonlogger.JsonFormatter(
        LOG_FORMAT,
        rename_fields={"levelname": "level"},
    ))
    handler.set_name("attendly-json")
    return handler


def setup_logging(level: int = logging.INFO):
    root = logging.getLogger()
    if any(h.get_name() == "attendly-json" for h in root.handlers):
        return
    root.addHandler(_json_handler())
    root.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
