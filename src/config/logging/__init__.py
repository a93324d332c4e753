"""Logs JSON do servidor de webhook.

Todo record sai com ``service`` e ``correlation_id`` (filter) e com
``level``/``logger`` renomeados pelo formatter. As mensagens são nomes
de evento; o contexto vai em ``extra``.

Eventos emitidos:
- api.routes.webhook: webhook_fulfilled, webhook_parse_failed,
  webhook_handler_failed, webhook_serialize_failed,
  webhook_client_disconnected
- app.server: server_listening, server_signal_received,
  server_graceful_shutdown_started, server_shutdown_completed,
  server_shutdown_timeout, server_listener_failed, server_context_done,
  server_listener_closed, server_context_cancelled,
  server_reconfigure_failed, server_signal_unavailable,
  server_shutting_down, server_stopped
- app.bootstrap: settings_validated, settings_validation_failed

Uso:
    configure_logging(level="INFO", service_name="ezcx",
                      correlation_id_getter=get_correlation_id)
    server = WebhookServer(":8080", logger=get_logger("ezcx.server"))
"""

from config.logging.config import configure_logging, get_logger
from config.logging.filters import CorrelationIdFilter
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
)

__all__ = [
    "FIELD_RENAME_MAP",
    "REQUIRED_LOG_FIELDS",
    "CorrelationIdFilter",
    "configure_logging",
    "create_json_formatter",
    "get_logger",
]
