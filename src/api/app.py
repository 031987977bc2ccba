from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlmodel import SQLModel
from .error import ClientError, ServerError
from src.domain import entities  # noqa: F401
from src.domain.errors import ErrorCode
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


async def handle_store_unavailable(request: Request, exc: Exception):
    error_dict = {
        "code": ErrorCode.STORE_UNAVAILABLE,
        "message": "Session store temporarily unavailable",
    }
    logger.error(f"Store unavailable: {exc.__class__.__name__}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": error_dict},
        headers={"Retry-After": "1"},
    )


def build_background_tasks(ApplicationConfig):
    from src.app.services.periodic_task import PeriodicTask
    from src.app.use_cases.maintenance import CollectGarbageUseCase
    from src.depends import (
        build_propagation_coordinator,
        build_session_store,
        directive_dispatcher,
        token_issuer,
        unit_of_work_scope,
    )

    async def collect_garbage():
        async with unit_of_work_scope() as uow:
            store = build_session_store(uow, token_issuer)
            coordinator = build_propagation_coordinator(uow, directive_dispatcher, token_issuer)
            await CollectGarbageUseCase(uow, store, coordinator).execute()

    async def rotate_signing_key():
        token_issuer.keys.rotate()

    return [
        PeriodicTask(
            "session-gc", ApplicationConfig.SESSION_GC_INTERVAL_SECONDS, collect_garbage
        ),
        PeriodicTask(
            "key-rotation",
            ApplicationConfig.KEY_ROTATION_INTERVAL_SECONDS,
            rotate_signing_key,
        ),
    ]


def create_app(ApplicationConfig) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from src.depends import directive_dispatcher, engine

        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

        tasks = build_background_tasks(ApplicationConfig)
        for task in tasks:
            task.start()
        logger.info("SSO authority started")
        try:
            yield
        finally:
            for task in tasks:
                await task.stop()
            await directive_dispatcher.aclose()
            await engine.dispose()
            logger.info("SSO authority stopped")

    app = FastAPI(title="SSO Authority", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if ApplicationConfig.ENABLE_LOGGING_MIDDLEWARE:
        from src.api.middleware.logging import RequestLoggingMiddleware

        app.add_middleware(RequestLoggingMiddleware)

    from src.api.routes import admin, audit, auth, client, health_check, propagation, sso

    api_prefix = ApplicationConfig.API_PREFIX
    app.include_router(health_check.router, tags=["Health"])
    app.include_router(sso.router, tags=["SSO"])
    app.include_router(auth.router, prefix=api_prefix, tags=["Authentication"])
    app.include_router(client.router, prefix=api_prefix, tags=["Client"])
    app.include_router(propagation.router, prefix=api_prefix, tags=["Propagation"])
    app.include_router(admin.router, prefix=api_prefix, tags=["Admin"])
    app.include_router(audit.router, prefix=api_prefix, tags=["Audit"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(OperationalError, handle_store_unavailable)
    app.add_exception_handler(InterfaceError, handle_store_unavailable)
    app.add_exception_handler(PoolTimeoutError, handle_store_unavailable)

    return app
