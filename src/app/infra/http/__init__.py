"""Listener HTTP concreto (uvicorn)."""

from app.infra.http.uvicorn_listener import UvicornListener, bind_socket, parse_address

__all__ = ["UvicornListener", "bind_socket", "parse_address"]
