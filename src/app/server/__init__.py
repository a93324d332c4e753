"""Servidor de webhook: rotas, listener e ciclo de vida."""

from app.server.lifecycle import (
    DEFAULT_ADDRESS,
    DEFAULT_SIGNALS,
    RECONFIGURE_SIGNAL,
    ServerState,
    WebhookServer,
)

__all__ = [
    "DEFAULT_ADDRESS",
    "DEFAULT_SIGNALS",
    "RECONFIGURE_SIGNAL",
    "ServerState",
    "WebhookServer",
]
