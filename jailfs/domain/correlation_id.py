"""Per-request correlation IDs carried through logging via contextvars."""

import contextvars
import logging
import uuid
from typing import Any, MutableMapping, Optional

LOGGER_PREFIX = "jailfs."

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "jailfs_correlation_id", default=None
)


def generate_correlation_id() -> str:
    """Generate a new correlation ID using UUID4."""
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    """Return the correlation ID bound to the current context, if any."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


class CorrelationLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps correlation_id and component on every record."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        correlation_id = get_correlation_id()
        extra["correlation_id"] = correlation_id if correlation_id is not None else "-"

        logger_name = self.logger.name
        if logger_name.startswith(LOGGER_PREFIX):
            logger_name = logger_name[len(LOGGER_PREFIX) :]
        extra["component"] = logger_name

        kwargs["extra"] = extra
        return msg, kwargs
