"""Per-operation correlation id for log lines.

A service operation opens an ``operation_scope``; every record logged inside
it, including from helper fetches gathered under it, carries the scope's id.
The previous id is restored when the scope exits, so one operation's id
never leaks into the next.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Generator, Optional

NO_CORRELATION_ID = "no-correlation-id"

# Copied into tasks created by asyncio.gather
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str:
    return correlation_id_var.get() or NO_CORRELATION_ID


def set_correlation_id(correlation_id: Optional[str]) -> Token:
    """Bind an id in the current context; pass the token to ``correlation_id_var.reset``."""
    return correlation_id_var.set(correlation_id)


@contextmanager
def operation_scope(correlation_id: Optional[str] = None) -> Generator[str, None, None]:
    """Bind a correlation id for the duration of one operation.

    Usage:
        with operation_scope() as correlation_id:
            await service.populate_existing_order(...)

    Args:
        correlation_id: Id to bind; a new UUID4 when omitted

    Yields:
        The bound id
    """
    correlation_id = correlation_id or str(uuid.uuid4())
    token = correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        correlation_id_var.reset(token)
