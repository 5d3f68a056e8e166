"""Correlation ID for one webhook delivery or send task.

The ID comes from the caller (X-Correlation-ID header, or the
`correlation_id` field of a send task) or is generated per request. The
JSON formatter and the sender's log context read it from here, so every
record of one delivery, including the outbound send, shares it.
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

CORRELATION_ID_HEADER = "X-Correlation-ID"

_correlation_id: ContextVar[str] = ContextVar("birdchat_correlation_id", default="")


def get_correlation_id() -> str:
    """Current correlation ID, empty string outside a request."""
    return _correlation_id.get()


@contextmanager
def correlation_scope(cid: str | None = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of the block.

    A falsy `cid` gets a fresh UUID. The previous ID is restored on exit,
    so a send task can nest its own ID inside the request's.
    """
    cid = cid or str(uuid.uuid4())
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)
