import json
import logging
from datetime import UTC, datetime

# Attributes passed through ``extra=`` that are copied into the JSON record.
_EXTRA_FIELDS = (
    "service",
    "request_id",
    "method",
    "path",
    "status",
    "duration_ms",
    "client_ip",
    "session_id",
    "model",
    "upstream",
)


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs JSON strings for structured logging systems (ELK, Datadog, etc.)
    """

    def __init__(self, service_name: str | None = None):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process_id": record.process,
            "thread_id": record.thread,
        }
        if self.service_name:
            log_obj["service"] = self.service_name

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                log_obj[key] = getattr(record, key)

        return json.dumps(log_obj, default=str)


def setup_structured_logging(service_name: str, level: str = "INFO") -> None:
    """
    Configure the root logger to use JSON formatting
    """
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter(service_name))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Replace handlers installed by uvicorn or basicConfig
    if root_logger.handlers:
        root_logger.handlers = []

    root_logger.addHandler(handler)


def setup_logging(service_name: str, structured: bool = True, level: str = "INFO") -> logging.Logger:
    """Pick JSON or plain-text logging and return the service logger."""
    if structured:
        setup_structured_logging(service_name, level)
    else:
        logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    return logging.getLogger(service_name)
