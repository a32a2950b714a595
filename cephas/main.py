import os

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .db import Base, engine
from .logging import setup_logging, RequestIdMiddleware
from .models import models  # noqa: F401  registers tables on Base.metadata
from .auth.router import router as auth_router
from .routes.users import router as users_router
from .routes.buildings import router as buildings_router
from .routes.splitters import router as splitters_router
from .routes.materials import router as materials_router
from .routes.invoices import router as invoices_router
from .routes.service_installers import router as service_installers_router
from .routes.orders import router as orders_router
from .routes.tasks import router as tasks_router
from .routes.projects import router as projects_router
from .routes.dashboard import router as dashboard_router
from .routes.reports import router as reports_router
from .routes.navigation import router as navigation_router
from .routes.notifications import router as notifications_router
from .services.envelope import http_exception_handler, ok, validation_exception_handler

logger = structlog.get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Failures use the same envelope as successes
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Routers
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(buildings_router)
    app.include_router(splitters_router)
    app.include_router(materials_router)
    app.include_router(invoices_router)
    app.include_router(service_installers_router)
    app.include_router(orders_router)
    app.include_router(tasks_router)
    app.include_router(projects_router)
    app.include_router(dashboard_router)
    app.include_router(reports_router)
    app.include_router(navigation_router)
    app.include_router(notifications_router)

    Instrumentator().instrument(app).expose(app)

    @app.get("/health")
    def health():
        return ok({"status": "ok", "environment": settings.environment})

    @app.on_event("startup")
    def _startup():
        if not settings.auto_create_db:
            return
        if settings.database_url.startswith("sqlite:///./var/"):
            os.makedirs("var", exist_ok=True)
        Base.metadata.create_all(bind=engine)
        logger.info("database_ready", url=settings.database_url.split("@")[-1])

    return app


app = create_app()
