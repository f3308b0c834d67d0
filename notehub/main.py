# notehub/main.py
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from notehub.config import Settings, get_settings
from notehub.errors import register_exception_handlers
from notehub.logging_config import configure_logging, get_logger
from notehub.repositories.base import NoteRepository
from notehub.repositories.factory import create_repository
from notehub.routers import notes
from notehub.routers.notes import get_note_service
from notehub.service import NoteService

logger = get_logger(__name__)


# ---------- Security Headers ----------
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        resp: Response = await call_next(request)
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        resp.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
        resp.headers.setdefault("Content-Security-Policy", "default-src 'none'")
        return resp


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[NoteRepository] = None,
) -> FastAPI:
    """
    Build the API.

    The lifespan creates the repository from ``settings`` unless one is passed
    in, and closes it on shutdown so every open watch stream ends.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level, settings.log_format)
        app.state.repository = repository or create_repository(settings)
        logger.info("api_started", version=settings.app_version, **settings.describe())
        try:
            yield
        finally:
            logger.info("api_stopping")
            await app.state.repository.close()
            logger.info("api_stopped")

    app = FastAPI(
        title="Notes API",
        description="Note CRUD with a live change stream, over in-memory or PostgreSQL storage.",
        version=settings.app_version,
        openapi_tags=[
            {"name": "health", "description": "Health and diagnostics"},
            {"name": "notes", "description": "Notes CRUD & change stream"},
            {"name": "ops", "description": "Operational info"},
        ],
        lifespan=lifespan,
    )

    # Metrics
    Instrumentator().instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")

    # ---------- Middleware ----------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    register_exception_handlers(app)

    # ---------- Health & Root ----------
    @app.get("/", tags=["health"])
    def root():
        return {"status": "OK"}

    @app.get("/health", tags=["health"])
    def health():
        return {"ok": True}

    # ---------- Ops ----------
    @app.get("/version", tags=["ops"])
    def version():
        return {"version": settings.app_version}

    @app.get("/stats", tags=["ops"])
    async def stats(service: NoteService = Depends(get_note_service)):
        return {
            "notes": await service.count_notes(),
            "watchers": service.repository.subscriber_count,
        }

    app.include_router(notes.router)
    return app


app = create_app()
