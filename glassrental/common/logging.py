import logging
from typing import Literal

from opentelemetry import trace

from .config import ServiceSettings

_TRACE_PLACEHOLDER = "-"
_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(service)s | %(name)s | "
    "trace_id=%(trace_id)s span_id=%(span_id)s | %(message)s"
)
# Driver loggers that flood DEBUG output with per-statement chatter.
_QUIET_LOGGERS = ("aiosqlite", "sqlalchemy.engine", "sqlalchemy.pool")


class TraceContextFilter(logging.Filter):
    """Stamp records with the service name and active OpenTelemetry span identifiers."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service_name
        context = trace.get_current_span().get_span_context()
        record.trace_id = format(context.trace_id, "032x") if context.is_valid else _TRACE_PLACEHOLDER
        record.span_id = format(context.span_id, "016x") if context.is_valid else _TRACE_PLACEHOLDER
        return True


def configure_logging(settings: ServiceSettings) -> None:
    """Set the root level and format and attach one shared :class:`TraceContextFilter`.

    Safe to call once per app factory; a second call only renames the service.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = settings.log_level
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.getLevelName(level), logging.WARNING))

    context_filter = next((f for f in root.filters if isinstance(f, TraceContextFilter)), None)
    if context_filter is None:
        context_filter = TraceContextFilter(settings.app_name)
        root.addFilter(context_filter)
    context_filter.service_name = settings.app_name
    for handler in root.handlers:
        if context_filter not in handler.filters:
            handler.addFilter(context_filter)
