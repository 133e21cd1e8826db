"""
Application factory.

Builds the database pool, the services and the realtime broadcaster, and
attaches them to `app.state` so routes resolve them per request.

Run with `uvicorn --factory campushub.main:create_app`.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campushub.api.broadcaster import RealtimeBroadcaster
from campushub.api.errors import register_error_handlers
from campushub.api.fast_api import router
from campushub.api.realtime import router as realtime_router
from campushub.database.config.config import Settings, get_settings
from campushub.database.connection import Database
from campushub.database.core import ConversationStore, SessionManager, UserAdmin
from campushub.logger import setup_logger

log = logging.getLogger(__name__)


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logger(settings.LOG_LEVEL)

    db = Database.from_settings(settings)
    if settings.CREATE_TABLES:
        db.create_all()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info(f"API mounted at {settings.API_PREFIX}")
        yield
        db.dispose()
        log.info("Database connections closed")

    app = FastAPI(title="CampusHub API", lifespan=lifespan)

    store = ConversationStore(db)
    app.state.settings = settings
    app.state.db = db
    app.state.session_manager = SessionManager.from_settings(db, settings)
    app.state.conversation_store = store
    app.state.user_admin = UserAdmin(db)
    app.state.broadcaster = RealtimeBroadcaster(store)

    origins = settings.allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # browsers reject credentialed requests against a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(router, prefix=settings.API_PREFIX)
    app.include_router(realtime_router)

    @app.get("/health")
    def health():
        return {"success": True, "message": "Server is running"}

    return app
