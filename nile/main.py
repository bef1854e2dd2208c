"""
Application factory: one FastAPI app serving the REST and WebSocket adapters over a
single UnifiedExecutor.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nile.actions.runner import UnifiedExecutor
from nile.api.rest import create_rest_router
from nile.api.ws import create_ws_router
from nile.config import ServerConfig
from nile.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def create_app(config: ServerConfig, executor: Optional[UnifiedExecutor] = None, log_level: Any = None) -> FastAPI:
    setup_logging(log_level or logging.INFO)
    executor = executor or UnifiedExecutor(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"{config.server_name} serving {len(executor.catalog.services)} services at {config.services_prefix}"
        )
        yield
        store = config.rate_limiting.store if config.rate_limiting else None
        if store is not None and hasattr(store, "close"):
            await store.close()
        engine = config.db.instance if config.db else None
        if engine is not None and hasattr(engine, "dispose"):
            await engine.dispose()

    app = FastAPI(title=config.server_name, version="0.1.0", lifespan=lifespan)
    app.state.executor = executor
    if config.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(config.allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.include_router(create_rest_router(executor))
    app.include_router(create_ws_router(executor))

    @app.get("/health")
    async def health():
        return {"ok": True}

    if config.enable_status:

        @app.get("/status")
        async def status():
            return {
                "status": True,
                "message": f"{config.server_name} is running",
                "data": {"services": len(executor.catalog.services), "actions": len(executor.catalog.actions)},
            }

    return app
