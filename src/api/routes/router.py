"""Criação da app ASGI e registro das rotas de webhook.

Cada padrão vira uma rota Starlette registrada para todos os métodos
HTTP; o endpoint responde 405 sozinho para não-POST, sem corpo.

Uso:
    app = create_api_app()
    register_webhook_route(app, "/confirm", confirm_handler, logger=logger)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI

from api.routes.webhook import create_webhook_endpoint

if TYPE_CHECKING:
    import logging

    from fulfillment.handler import WebhookHandler

# Starlette troca methods=None por GET/HEAD em endpoints função
ALL_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


def create_api_app(title: str = "ezcx") -> FastAPI:
    """Cria a aplicação FastAPI sem docs/openapi (não é uma API pública)."""
    return FastAPI(
        title=title,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )


def register_webhook_route(
    app: FastAPI,
    pattern: str,
    handler: WebhookHandler,
    *,
    logger: logging.Logger | None = None,
) -> None:
    """Registra ``handler`` no padrão de URL informado."""
    app.add_route(
        pattern,
        create_webhook_endpoint(handler, logger=logger),
        methods=list(ALL_METHODS),
        include_in_schema=False,
    )
