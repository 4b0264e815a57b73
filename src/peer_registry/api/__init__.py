"""API routers for the peer registry."""

from .peers import peers_router, register_exception_handlers

__all__ = ["peers_router", "register_exception_handlers"]
