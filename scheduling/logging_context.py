"""Request correlation ids for scheduling log records.

Each service call runs inside ``request_context()`` (via ``request_scoped``),
which binds a fresh ``REQ-xxxxxxxx`` id to the current context and restores
the previous one on exit. Nested service calls keep the outer id.
``RequestIdFilter`` copies the bound id onto every record it sees; installed
on a handler it covers records from any logger, so the ``%(request_id)s``
placeholder in the configured format always resolves.

Usage:
    from scheduling.logging_context import get_request_logger, request_context

    logger = get_request_logger(__name__)
    with request_context():
        logger.info("Committing booking")  # ... [REQ-1a2b3c4d] INFO: Committing booking
"""

import functools
import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, Optional, TypeVar

NO_REQUEST_ID = "-"

_request_id: ContextVar[str] = ContextVar("request_id", default=NO_REQUEST_ID)

T = TypeVar("T")


def new_request_id() -> str:
    return f"REQ-{uuid.uuid4().hex[:8]}"


def get_request_id() -> str:
    return _request_id.get()


@contextmanager
def request_context(request_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation id for the duration of one operation."""
    token = _request_id.set(request_id or new_request_id())
    try:
        yield _request_id.get()
    finally:
        _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Stamps the bound correlation id on each record as ``request_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def install_request_id_filter(target) -> None:
    """Attach a single RequestIdFilter to a logger or handler."""
    if not any(isinstance(f, RequestIdFilter) for f in target.filters):
        target.addFilter(RequestIdFilter())


def get_request_logger(name: str) -> logging.Logger:
    """Module logger whose records always carry ``request_id``."""
    logger = logging.getLogger(name)
    install_request_id_filter(logger)
    return logger


def request_scoped(func: Callable[..., T]) -> Callable[..., T]:
    """Run ``func`` under a correlation id, reusing one already bound by a caller."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        current = _request_id.get()
        with request_context(None if current == NO_REQUEST_ID else current):
            return func(*args, **kwargs)

    return wrapper
