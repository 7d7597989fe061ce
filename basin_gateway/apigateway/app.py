from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..addressing import normalize_address
from ..objectstore import Backend, FaucetSigner, make_backend
from ..sequencer import TransactionSequencer
from .errors import install_error_handlers
from .observability import RequestContextMiddleware
from .routes import get_router
from .service import GatewayService
from .settings import APP_NAME, APP_VERSION, GatewaySettings

log = logging.getLogger("apigateway")


def build_service(settings: GatewaySettings, backend: Backend) -> GatewayService:
    network = settings.network.address_prefix
    signer = FaucetSigner(settings.private_key.get_secret_value(), network)
    return GatewayService(
        signer=signer,
        store_address=normalize_address(settings.os_address, network),
        backend=backend,
        sequencer=TransactionSequencer(backend.sequences, submit_timeout=settings.broadcast_timeout_s),
        max_file_size=settings.max_file_size,
    )


def create_app(settings: Optional[GatewaySettings] = None, backend: Optional[Backend] = None) -> FastAPI:
    settings = settings or GatewaySettings()
    if backend is None:
        backend = make_backend(
            settings.network,
            rpc_url=settings.rpc_url,
            object_api_url=settings.object_api_url,
            chain_id=settings.chain_id,
            request_timeout=settings.request_timeout_s,
        )
    service = build_service(settings, backend)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("gateway.start network=%s store=%s faucet=%s", settings.network.value, service.store_address, service.signer.address)
        yield
        await backend.close()
        log.info("gateway.stop")

    app = FastAPI(title=APP_NAME, version=APP_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.gateway = service

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["POST"],
        allow_headers=["Content-Type"],
    )
    install_error_handlers(app)

    # Routers
    app.include_router(get_router(lambda: service))

    return app
