import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel
from src.api.error import install_error_handlers
from src.api.routes import charges
from src.depends import build_event_publisher, build_gateway_client, engine
import src.domain  # noqa: F401  registers every table on SQLModel.metadata

logger = logging.getLogger(__name__)


def create_app(config) -> FastAPI:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Charge billing service started")
        yield
        await engine.dispose()

    app = FastAPI(
        title="Charge Billing Service",
        description="Charge lifecycle: create, update, cancel, pay, refund and gateway sync",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.event_publisher = build_event_publisher(config)
    app.state.gateway_client = build_gateway_client(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if config.ENABLE_LOGGING_MIDDLEWARE:
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            start = time.monotonic()
            response = await call_next(request)
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms}ms)"
            )
            return response

    install_error_handlers(app)
    app.include_router(charges.router, prefix=config.API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app
