"""Observabilidade: correlation_id dos requests de webhook.

Uso:
    from app.observability import get_correlation_id, set_correlation_id
"""

from app.observability.correlation import (
    CORRELATION_ID_HEADER,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

__all__ = [
    "CORRELATION_ID_HEADER",
    "get_correlation_id",
    "reset_correlation_id",
    "set_correlation_id",
]
