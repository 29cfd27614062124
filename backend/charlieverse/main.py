from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from charlieverse import __version__
from charlieverse.config import Settings, get_settings
from charlieverse.logging_config import setup_logging
from charlieverse.repositories.factory import build_storage
from charlieverse.routes import api_router, ws_router
from charlieverse.services.analytics_service import AnalyticsService
from charlieverse.services.auth_service import AuthService
from charlieverse.services.contact_service import ContactService
from charlieverse.services.email_service import EmailService
from charlieverse.services.event_bus import EventBus
from charlieverse.services.identity_service import FirebaseIdentityVerifier
from charlieverse.services.notification_service import NotificationService
from charlieverse.services.project_service import ProjectService
from charlieverse.services.session_service import SessionStore
from charlieverse.services.subscribers import wire_subscribers
from charlieverse.services.task_service import TaskService
from charlieverse.services.upload_service import UploadService
from charlieverse.tools.exceptions import CharlieverseError

load_dotenv()

logger = logging.getLogger(__name__)


async def _cleanup_uploads_periodically(service: UploadService, retention_hours: float) -> None:
    interval = max(min(retention_hours * 3600, 3600), 60)
    while True:
        await service.cleanup_old_files(retention_hours)
        await asyncio.sleep(interval)


def _lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)

        storage = await build_storage(settings)
        event_bus = EventBus()
        sessions = SessionStore(settings.session_ttl_seconds)
        notification_service = NotificationService()
        task_service = TaskService()
        email_service = EmailService.from_settings(settings)
        wire_subscribers(event_bus, notification_service, email_service, task_service, settings.admin_email)

        auth_service = AuthService(
            storage,
            sessions,
            FirebaseIdentityVerifier(settings.firebase_project_id, settings.firebase_jwks_url),
            event_bus,
            settings.admin_email,
        )
        upload_service = UploadService(
            settings.upload_dir,
            event_bus,
            max_files=settings.max_upload_files,
            max_size=settings.max_upload_size,
        )

        app.state.settings = settings
        app.state.storage = storage
        app.state.event_bus = event_bus
        app.state.sessions = sessions
        app.state.notification_service = notification_service
        app.state.task_service = task_service
        app.state.email_service = email_service
        app.state.auth_service = auth_service
        app.state.project_service = ProjectService(storage, event_bus)
        app.state.contact_service = ContactService(storage, event_bus)
        app.state.analytics_service = AnalyticsService(storage, window_days=settings.analytics_window_days)
        app.state.upload_service = upload_service

        if settings.seed_admin:
            await auth_service.seed_admin(settings.admin_password)
        if settings.upload_retention_hours:
            task_service.spawn(
                _cleanup_uploads_periodically(upload_service, settings.upload_retention_hours),
                name="upload-cleanup",
            )
        logger.info("Charlieverse backend started with %s storage", storage.name)

        try:
            yield
        finally:
            await notification_service.shutdown()
            await task_service.shutdown()
            await storage.close()

    return lifespan


async def _charlieverse_error(request: Request, exc: CharlieverseError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({".".join(str(part) for part in error["loc"][1:]) or "body" for error in exc.errors()})
    return JSONResponse(status_code=400, content={"message": f"Invalid request: {', '.join(fields)}"})


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title="Charlieverse Backend",
        version=__version__,
        lifespan=_lifespan(settings),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CharlieverseError, _charlieverse_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)

    app.include_router(api_router, prefix=settings.api_prefix)
    app.include_router(ws_router)

    return app


app = create_app()
