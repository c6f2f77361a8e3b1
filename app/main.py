import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.core.config import Settings, get_settings
from app.core.database import Database, build_database
from app.core.exceptions import register_exception_handlers
from app.core.logging_config import setup_logging
from app.routers import health, offers, products, users
from app.services.media import MediaStorage
from app.services.notifications import NotificationService

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        app.state.database.create_all()
        app.state.media_storage.ensure_dirs()
        logger.info("%s started (%s)", settings.app_name, settings.app_env)

        yield

        # Shutdown
        await app.state.notifier.drain()
        app.state.database.dispose()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    # --- Collaborators, built once per app and injected into handlers ---
    app.state.settings = settings
    app.state.database = database or build_database()
    app.state.media_storage = MediaStorage(settings.media_root, settings.media_url)
    app.state.notifier = NotificationService(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # --- Routers ---
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(offers.router)

    # --- Uploaded media (photos / audios / videos) ---
    app.state.media_storage.ensure_dirs()
    app.mount(
        settings.media_url,
        StaticFiles(directory=settings.media_root),
        name="uploads",
    )

    @app.get("/")
    def root():
        return {"message": f"{settings.app_name} backend is running"}

    return app


app = create_app()
