"""correlation_id por request de webhook.

Lido do header ``x-correlation-id`` (ou gerado) no início do dispatch
e injetado em todo log via ContextVar (async-safe).

Uso:
    token = set_correlation_id(request.headers.get("x-correlation-id"))
    try:
        ...
    finally:
        reset_correlation_id(token)
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar, Token

CORRELATION_ID_HEADER = "x-correlation-id"

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id do contexto atual ("" fora de request)."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> Token[str]:
    """Define o correlation_id; gera UUID v4 quando ausente.

    Returns:
        Token para reset posterior via reset_correlation_id().
    """
    value = correlation_id or str(uuid.uuid4())
    return _correlation_id.set(value)


def reset_correlation_id(token: Token[str]) -> None:
    """Restaura o correlation_id ao valor anterior."""
    _correlation_id.reset(token)
