"""Dispatch de um request de webhook de fulfillment.

Fluxo:
1. Método diferente de POST -> 405 sem corpo (antes de qualquer parse)
2. correlation_id do header (ou gerado) para os logs
3. Parse do corpo; ParseError -> 400 sem corpo, nenhuma resposta montada
4. Contexto anexado ao request; resposta derivada do request
5. Handler; HandlerError -> 500 sem corpo
6. Serialização; SerializeError -> 500 sem corpo
7. Sucesso -> 200 com o JSON da resposta

Falhas de um request nunca afetam outros requests nem o servidor.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import Request, Response, status
from starlette.requests import ClientDisconnect

from app.observability import (
    CORRELATION_ID_HEADER,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from fulfillment.context import RequestContext
from fulfillment.handler import invoke_handler
from fulfillment.request import WebhookRequest
from fulfillment.response import WebhookResponse
from utils.errors import HandlerError, ParseError, SerializeError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fulfillment.handler import WebhookHandler

JSON_MEDIA_TYPE = "application/json"


def create_webhook_endpoint(
    handler: WebhookHandler,
    *,
    logger: logging.Logger | None = None,
) -> Callable[[Request], Awaitable[Response]]:
    """Adapta um handler de fulfillment para um endpoint ASGI."""
    log = logger or logging.getLogger(__name__)

    async def webhook_endpoint(request: Request) -> Response:
        if request.method != "POST":
            return Response(
                status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
                headers={"Allow": "POST"},
            )

        token = set_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        try:
            return await _dispatch(request, handler, log)
        finally:
            reset_correlation_id(token)

    return webhook_endpoint


async def _dispatch(
    request: Request,
    handler: WebhookHandler,
    log: logging.Logger,
) -> Response:
    path = request.url.path

    try:
        raw_body = await request.body()
    except ClientDisconnect:
        log.warning(
            "webhook_client_disconnected",
            extra={"path": path, "stage": "read_body"},
        )
        return Response(status_code=status.HTTP_400_BAD_REQUEST)

    try:
        webhook_request = WebhookRequest.parse(raw_body)
    except ParseError as exc:
        log.warning(
            "webhook_parse_failed",
            extra={
                "path": path,
                "error": str(exc),
                "payload_size": len(raw_body),
            },
        )
        return Response(status_code=status.HTTP_400_BAD_REQUEST)

    webhook_request.bind_context(
        RequestContext.from_request(request, log, get_correlation_id())
    )
    webhook_response = WebhookResponse.from_request(webhook_request)

    try:
        await invoke_handler(handler, webhook_response, webhook_request)
    except HandlerError as exc:
        log.exception(
            "webhook_handler_failed",
            extra={
                "path": path,
                "fulfillment_tag": webhook_request.fulfillment_tag,
                "error_type": type(exc.__cause__).__name__,
            },
        )
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    try:
        body = webhook_response.serialize()
    except SerializeError:
        log.exception(
            "webhook_serialize_failed",
            extra={
                "path": path,
                "fulfillment_tag": webhook_request.fulfillment_tag,
            },
        )
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if await request.is_disconnected():
        log.warning(
            "webhook_client_disconnected",
            extra={"path": path, "stage": "write_response"},
        )

    log.info(
        "webhook_fulfilled",
        extra={
            "path": path,
            "fulfillment_tag": webhook_request.fulfillment_tag,
            "message_count": len(webhook_response.messages),
            "response_size": len(body),
        },
    )
    return Response(content=body, media_type=JSON_MEDIA_TYPE)
