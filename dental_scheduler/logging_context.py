"""Request correlation for engine log output.

One call into the engine (an availability search, a risk score, an
optimization) runs inside a ``request_context``. Every record emitted
while it is open carries that request's id, and ``LOG_FORMAT`` prints it,
so interleaved requests can be told apart in a shared log.

Usage:
    from dental_scheduler.logging_context import configure_logging, request_context

    configure_logging(logging.INFO)
    with request_context("REQ-abc123"):
        optimize_schedule(context, bookings_by_date)
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

NO_REQUEST_ID = "-"
LOG_FORMAT = "%(asctime)s [%(name)s] [%(request_id)s] %(levelname)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_request_id: ContextVar[str] = ContextVar("request_id", default=NO_REQUEST_ID)


def get_request_id() -> str:
    """Correlation ID of the request being handled, or ``NO_REQUEST_ID``."""
    return _request_id.get()


@contextmanager
def request_context(request_id: str) -> Iterator[str]:
    """Tag every log record emitted inside the block with ``request_id``."""
    token = _request_id.set(request_id)
    try:
        yield request_id
    finally:
        _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Stamps the current request id on records passing through a handler.

    Attached to handlers rather than loggers so records from every module
    get the attribute ``LOG_FORMAT`` needs.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def attach_request_id(handler: logging.Handler) -> logging.Handler:
    if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
        handler.addFilter(RequestIdFilter())
    return handler


def configure_logging(level: int, force: bool = False) -> None:
    """Configure root logging with ``LOG_FORMAT``.

    Root handlers that already exist also get the filter, so the format
    never fails on a record that lacks ``request_id``.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT, force=force)
    for handler in logging.getLogger().handlers:
        attach_request_id(handler)
