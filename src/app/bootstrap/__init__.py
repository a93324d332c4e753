"""Bootstrap da aplicação: inicialização e wiring.

Composition root: configura logging e monta o ``WebhookServer`` a
partir das settings de ambiente. Handlers são registrados pelo
chamador antes do start.

Uso:
    from app.bootstrap import create_server, initialize_app, run_server

    initialize_app()
    server = create_server()
    server.handle("/confirm", confirm_order)
    asyncio.run(run_server(server))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.observability import get_correlation_id
from app.server import WebhookServer
from config.logging import configure_logging, get_logger
from config.settings import get_base_settings, get_server_settings

if TYPE_CHECKING:
    import asyncio

    from config.settings import BaseSettings, ServerSettings

STRICT_VALIDATION_ENVS = {"staging", "production"}

logger = logging.getLogger(__name__)


def initialize_app(settings: BaseSettings | None = None) -> None:
    """Configura logging JSON com correlation_id.

    Deve ser chamada uma vez no início do processo.
    """
    base = settings or get_base_settings()
    configure_logging(
        level=base.log_level,
        service_name=base.service_name,
        correlation_id_getter=get_correlation_id,
    )


def validate_runtime_settings(
    base: BaseSettings | None = None,
    server: ServerSettings | None = None,
) -> None:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido;
    em `development` apenas registra alerta.
    """
    base = base or get_base_settings()
    server = server or get_server_settings()
    errors = [f"base: {error}" for error in base.validate()]
    errors.extend(f"server: {error}" for error in server.validate())

    if not errors:
        logger.info(
            "settings_validated",
            extra={"component": "bootstrap", "result": "ok", "environment": base.environment},
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": base.environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if base.environment in STRICT_VALIDATION_ENVS:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {base.environment}:\n{details}")


def create_server(
    settings: ServerSettings | None = None,
    *,
    logger: logging.Logger | None = None,
) -> WebhookServer:
    """Cria o servidor a partir das settings (ambiente por padrão)."""
    server_settings = settings or get_server_settings()
    return WebhookServer(
        server_settings.address,
        logger=logger or get_logger("ezcx.server"),
        shutdown_timeout=server_settings.shutdown_timeout_seconds,
    )


async def run_server(
    server: WebhookServer,
    settings: ServerSettings | None = None,
    *,
    parent: asyncio.Event | None = None,
) -> None:
    """Roda o servidor em HTTPS quando há par TLS configurado, senão HTTP."""
    server_settings = settings or get_server_settings()
    if server_settings.tls_enabled:
        await server.listen_and_serve_tls(
            server_settings.tls_cert_file,
            server_settings.tls_key_file,
            parent=parent,
        )
        return
    await server.listen_and_serve(parent=parent)
