"""Agregador de settings do ezcx.

Re-exporta todas as settings e funções de cada módulo.
"""

from __future__ import annotations

from config.settings.base import (
    BaseSettings,
    Environment,
    get_base_settings,
)
from config.settings.server import (
    DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
    ServerSettings,
    get_server_settings,
)

__all__ = [
    "DEFAULT_SHUTDOWN_TIMEOUT_SECONDS",
    "BaseSettings",
    "Environment",
    "ServerSettings",
    "get_base_settings",
    "get_server_settings",
]
