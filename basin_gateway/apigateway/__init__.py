"""
HTTP surface of the gateway: ``POST /list``, ``POST /get`` and ``POST /set``.

Exports the app factory, the router factory and the settings model.
"""
from __future__ import annotations
from .app import build_service, create_app
from .contracts import GetRequest
from .routes import get_router
from .service import GatewayService, add_options_for
from .settings import APP_NAME, APP_VERSION, GatewaySettings

__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "GatewaySettings",
    "GatewayService",
    "GetRequest",
    "add_options_for",
    "build_service",
    "create_app",
    "get_router",
]
