"""Rotas HTTP: um padrão de URL por handler de fulfillment.

- webhook.py: dispatch por request (método, parse, handler, escrita)
- router.py: criação da app ASGI e registro das rotas
"""

from __future__ import annotations

from api.routes.router import create_api_app, register_webhook_route
from api.routes.webhook import create_webhook_endpoint

__all__ = ["create_api_app", "create_webhook_endpoint", "register_webhook_route"]
