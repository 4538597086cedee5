from contextlib import asynccontextmanager
import asyncio
import contextlib
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api.http.auth import router as auth_router
from app.api.http.documents import router as documents_router
from app.api.ws.sync import router as websocket_router
from app.core.config import settings
from app.core.db import SessionLocal, init_models
from app.core.errors import register_exception_handlers
from app.core.logging_config import configure_logging
from app.domains.collaboration.autosave import Autosaver
from app.domains.collaboration.rooms import RoomManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)

    if settings.create_tables:
        await init_models()

    autosave_task = None
    if settings.autosave_interval_seconds > 0:
        autosaver = Autosaver(app.state.room_manager, SessionLocal, settings.autosave_interval_seconds)
        autosave_task = asyncio.create_task(autosaver.run())
        logger.info(f"Autosave every {settings.autosave_interval_seconds}s")

    try:
        yield
    finally:
        if autosave_task is not None:
            autosave_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await autosave_task
            # последние изменения из комнат
            await autosaver.flush()


def create_app() -> FastAPI:
    app = FastAPI(
        title="DocCollab",
        description="Совместное редактирование документов",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.room_manager = RoomManager()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Аватары лежат во внешнем хранилище, здесь только раздача по имени файла
    if os.path.isdir(settings.avatar_dir):
        app.mount("/uploads/avatars", StaticFiles(directory=settings.avatar_dir), name="avatars")

    app.include_router(auth_router)
    app.include_router(documents_router)
    app.include_router(websocket_router)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
