import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import VEND_DURATION_MS, getenv
from .controller import VendingController
from .registry import ConnectionRegistry
from .routes.vmc_api import router as vmc_router
from .websockets.vmc_ws import router as vmc_ws_router

logging.basicConfig(
    level=getenv("LOG_LEVEL"),
    format=getenv("LOG_FORMAT"),
)
_logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    _logger.info("%s ready, vend duration %d ms", app.title, app.state.controller.vend_duration_ms)
    try:
        yield
    finally:
        _logger.info("Shutting down %s...", app.title)
        await app.state.controller.shutdown()
        _logger.info("Server closed")

def create_app(vend_duration_ms: int = VEND_DURATION_MS) -> FastAPI:
    app = FastAPI(title=getenv("SERVICE_NAME"), lifespan=lifespan)
    app.state.registry = ConnectionRegistry()
    app.state.controller = VendingController(app.state.registry, vend_duration_ms=vend_duration_ms)

    raw_allowed_origins = getenv("ALLOWED_DOMAINS")
    allowed_origins = [
        origin.strip()
        for origin in raw_allowed_origins.split(",")
        if origin.strip() and origin.strip() != "*"
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_origin_regex=".*" if "*" in raw_allowed_origins or not allowed_origins else None,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # HTTP routers
    app.include_router(vmc_router)

    # WebSocket routers
    app.include_router(vmc_ws_router)
    return app

app = create_app()

def run() -> None:
    import uvicorn

    port = int(getenv("PORT"))
    _logger.info("Starting %s on port %d (WebSocket ws://localhost:%d)", getenv("SERVICE_NAME"), port, port)
    uvicorn.run(
        app,
        host=getenv("HOST"),
        port=port,
        log_level=str(getenv("LOG_LEVEL")).lower(),
    )

if __name__ == "__main__":
    run()
