"""Protocolos e contratos do core da aplicação."""

from .listener import ListenerConfig, ListenerFactory, ListenerProtocol

__all__ = [
    "ListenerConfig",
    "ListenerFactory",
    "ListenerProtocol",
]
