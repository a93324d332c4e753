"""Contrato do handler de fulfillment.

Um handler recebe a resposta (mutável) e o request (somente leitura
por convenção). Sucesso = retornar; erro = levantar exceção. Handlers
podem ser síncronos ou ``async``; os síncronos rodam em thread para
não bloquear o event loop.

Exemplo:
    async def confirm_order(res: WebhookResponse, req: WebhookRequest) -> None:
        size, _ = req.session_parameter("size")
        res.add_text_message(f"Your {size} shirt is on the way.")
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from typing import TYPE_CHECKING, BinaryIO, Protocol

from fulfillment.context import RequestContext
from fulfillment.response import WebhookResponse
from utils.errors import HandlerError

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from fulfillment.request import WebhookRequest


class WebhookHandler(Protocol):
    """Capacidade fornecida pelo usuário: ``(response, request) -> None``."""

    def __call__(
        self,
        response: WebhookResponse,
        request: WebhookRequest,
    ) -> Awaitable[None] | None: ...


def is_async_handler(handler: object) -> bool:
    """Detecta handlers ``async`` (inclusive partial e objetos chamáveis)."""
    while isinstance(handler, functools.partial):
        handler = handler.func
    return inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
        getattr(handler, "__call__", None)
    )


async def invoke_handler(
    handler: WebhookHandler,
    response: WebhookResponse,
    request: WebhookRequest,
) -> None:
    """Executa o handler convertendo qualquer falha em HandlerError.

    Raises:
        HandlerError: O handler levantou exceção (original em ``__cause__``).
    """
    try:
        if is_async_handler(handler):
            result = handler(response, request)
        else:
            result = await asyncio.to_thread(handler, response, request)
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        raise HandlerError(f"handler_failed: {type(exc).__name__}: {exc}") from exc


async def run_handler(
    handler: WebhookHandler,
    request: WebhookRequest,
    out: BinaryIO | None = None,
) -> WebhookResponse:
    """Executa o ciclo request -> handler -> serialização sem HTTP.

    Útil em testes de handlers. Requests sem contexto recebem um
    contexto sem transporte. O JSON serializado vai para ``out``
    quando informado.

    Raises:
        HandlerError: O handler falhou.
        SerializeError: A resposta montada não pôde ser codificada.
    """
    if not request.has_context:
        request.bind_context(RequestContext.background())
    response = WebhookResponse.from_request(request)
    await invoke_handler(handler, response, request)
    if out is None:
        response.serialize()
    else:
        response.write_to(out)
    return response
