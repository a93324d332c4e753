"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    ContextAlreadyBoundError,
    ContextNotBoundError,
    DuplicateRouteError,
    EzcxError,
    HandlerError,
    ListenerFatalError,
    ParseError,
    SerializeError,
    ServerStateError,
    ShutdownTimeoutError,
    UnsupportedValueType,
)

__all__ = [
    "ContextAlreadyBoundError",
    "ContextNotBoundError",
    "DuplicateRouteError",
    "EzcxError",
    "HandlerError",
    "ListenerFatalError",
    "ParseError",
    "SerializeError",
    "ServerStateError",
    "ShutdownTimeoutError",
    "UnsupportedValueType",
]
