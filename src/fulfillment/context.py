"""Contexto por request anexado ao WebhookRequest antes do handler."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request

DEFAULT_LOGGER_NAME = "fulfillment"


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Contexto cancelável do request HTTP em andamento.

    Atributos:
        logger: Logger injetado pelo servidor (o handler deve usá-lo).
        correlation_id: ID de rastreamento do request.
        disconnect_check: Corrotina que informa se o cliente desconectou.
    """

    logger: logging.Logger
    correlation_id: str = ""
    disconnect_check: Callable[[], Awaitable[bool]] | None = field(default=None, repr=False)

    async def is_cancelled(self) -> bool:
        """Retorna True se o cliente HTTP já desconectou."""
        if self.disconnect_check is None:
            return False
        return await self.disconnect_check()

    @classmethod
    def from_request(
        cls,
        request: Request,
        logger: logging.Logger,
        correlation_id: str,
    ) -> RequestContext:
        """Deriva o contexto do request ASGI (cancelamento = desconexão)."""
        return cls(
            logger=logger,
            correlation_id=correlation_id,
            disconnect_check=request.is_disconnected,
        )

    @classmethod
    def background(cls, logger: logging.Logger | None = None) -> RequestContext:
        """Contexto sem transporte, para testes e uso fora do servidor."""
        return cls(logger=logger or logging.getLogger(DEFAULT_LOGGER_NAME))
