"""
Application factory for the BebCom Delivery API.

create_app() wires the whole service together:

    AvailabilityStore -> ConnectionSupervisor -> AvailabilityService -> routes
                                   |                    |
                                   +---- SyncCache <----+

The store connection is started in the background by the lifespan handler and
is never awaited there, so the HTTP listener accepts requests (and answers
/health) right away, even when the store is slow or down.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .connection import ConnectionSupervisor
from .errors import error_response
from .middleware import RequestIDMiddleware
from .rate_limit import limiter
from .routes import admin_router, availability_router, orders_router
from .schemas.availability import AvailabilityCounts
from .schemas.health import ConnectionOut, HealthOut
from .services.audit import AuditLog
from .services.availability import AvailabilityService
from .services.payment import PaymentService
from .storage import AvailabilityStore, build_store
from .storage.base import AvailabilityKind
from .sync_cache import SyncCache

logger = logging.getLogger(__name__)


def _list_endpoints(app: FastAPI) -> List[str]:
    # Read from the OpenAPI schema so routes from included routers are listed too
    endpoints = []
    for path, operations in app.openapi()["paths"].items():
        for method in sorted(operations):
            endpoints.append(f"{method.upper():<5} {path}")
    return endpoints


def create_app(
    store: Optional[AvailabilityStore] = None,
    probe_interval: Optional[float] = None,
    retry_base_delay: Optional[float] = None,
    retry_max_attempts: Optional[int] = None,
    store_timeout: Optional[float] = None,
) -> FastAPI:
    """
    Create a FastAPI application.

    Args:
        store: Availability store to use. If None, the backend selected by
               STORAGE_BACKEND is built from configuration.
        probe_interval: Liveness probe period (default PROBE_INTERVAL_SECONDS).
        retry_base_delay: Backoff unit (default RETRY_BASE_DELAY_SECONDS).
        retry_max_attempts: Attempts per retry round (default RETRY_MAX_ATTEMPTS).
        store_timeout: Per-operation timeout (default STORE_TIMEOUT_SECONDS).

    Returns:
        Configured FastAPI application
    """
    store_timeout = config.STORE_TIMEOUT_SECONDS if store_timeout is None else store_timeout

    if store is None:
        store = build_store(
            config.STORAGE_BACKEND,
            data_file=config.DATA_FILE,
            database_url=config.DATABASE_URL,
            connect_timeout=store_timeout,
        )

    cache = SyncCache()
    audit = AuditLog(max_entries=config.AUDIT_LOG_MAX_ENTRIES)
    supervisor = ConnectionSupervisor(
        store,
        probe_interval=config.PROBE_INTERVAL_SECONDS if probe_interval is None else probe_interval,
        base_delay=config.RETRY_BASE_DELAY_SECONDS if retry_base_delay is None else retry_base_delay,
        max_attempts=config.RETRY_MAX_ATTEMPTS if retry_max_attempts is None else retry_max_attempts,
        operation_timeout=store_timeout,
    )
    availability_service = AvailabilityService(
        cache,
        supervisor,
        audit=audit,
        default_actor=config.DEFAULT_ADMIN_NAME,
    )
    supervisor.on_connected = availability_service.reload
    payment_service = PaymentService(supervisor)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Connect in the background; the port must be bound without waiting on the store
        supervisor.start()
        logger.info(
            "%s v%s started (storage: %s)",
            config.SERVICE_NAME,
            config.API_VERSION,
            store.backend_name,
        )
        yield
        await supervisor.stop()
        logger.info("%s stopped", config.SERVICE_NAME)

    app = FastAPI(
        title=config.SERVICE_NAME,
        description="Product and flavor availability, admin bulk updates and simulated PIX checkout",
        version=config.API_VERSION,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Health", "description": "Health check endpoints"},
            {"name": "Availability", "description": "Public availability reads"},
            {"name": "Admin", "description": "Admin endpoints for availability management"},
            {"name": "Orders", "description": "Simulated PIX checkout"},
        ],
    )

    app.state.store = store
    app.state.cache = cache
    app.state.audit = audit
    app.state.supervisor = supervisor
    app.state.availability_service = availability_service
    app.state.payment_service = payment_service

    # ---------- Middleware ----------
    app.add_middleware(RequestIDMiddleware)

    # Credentials cannot be combined with a wildcard origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ORIGINS != ["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "x-admin-key", "X-Requested-With", "X-Request-ID"],
    )

    # ---------- Rate limiting ----------
    app.state.limiter = limiter

    # ---------- Error handlers ----------

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(
                404,
                "Rota não encontrada",
                requestedUrl=request.url.path,
                availableEndpoints=_list_endpoints(request.app),
            )
        return error_response(
            exc.status_code,
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.debug("Rejected request body on %s: %s", request.url.path, exc.errors())
        return error_response(
            400,
            "Dados inválidos",
            code="INVALID_INPUT",
            details=jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return error_response(429, f"Rate limit exceeded: {exc.detail}")

    # ---------- Routers ----------
    app.include_router(availability_router)
    app.include_router(admin_router)
    app.include_router(orders_router)

    # ---------- Health ----------

    @app.get("/health", response_model=HealthOut, tags=["Health"])
    def health_check() -> HealthOut:
        state = supervisor.connection_state()
        sizes = cache.sizes()
        return HealthOut(
            status="online" if state.connected else "degraded",
            service=config.SERVICE_NAME,
            version=config.API_VERSION,
            environment=config.ENVIRONMENT,
            storage=store.backend_name,
            connected=state.connected,
            connection=ConnectionOut(**state.to_dict()),
            data=AvailabilityCounts(
                products=sizes[AvailabilityKind.PRODUCTS.value],
                flavors=sizes[AvailabilityKind.FLAVORS.value],
            ),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    @app.get("/", include_in_schema=False)
    def root():
        return RedirectResponse(url="/health")

    @app.get("/api/test", tags=["Health"])
    def api_test(request: Request):
        return {
            "success": True,
            "message": "API está funcionando!",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": _list_endpoints(request.app),
        }

    logger.info("Application created (storage: %s)", store.backend_name)
    return app


def run_server(
    host: str = None,
    port: int = None,
    reload: bool = False,
) -> None:
    """
    Run the application with uvicorn.

    Args:
        host: Host to bind to (default HOST)
        port: Port to run on (default PORT)
        reload: Enable auto-reload for development
    """
    import uvicorn

    host = host or config.HOST
    port = port or config.PORT

    logger.info("Starting %s on %s:%d", config.SERVICE_NAME, host, port)

    uvicorn.run(
        "delivery_api.main:app",
        host=host,
        port=port,
        reload=reload,
    )
