from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import settings
from app.db.base import Base


def _engine_options(database_url: str) -> dict:
    options = {"echo": settings.database_echo}
    # aiosqlite соединения не переживают смену event loop
    if database_url.startswith("sqlite"):
        options["poolclass"] = NullPool
    else:
        options["pool_pre_ping"] = True
    return options


# Асинхронный движок
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# Сессии
SessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


# Функция для dependency injection в FastAPI
async def get_db():
    async with SessionLocal() as session:
        yield session


async def init_models() -> None:
    """Создание таблиц по метаданным моделей"""
    import app.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def reset_models() -> None:
    """Пересоздание всех таблиц (используется в тестах)"""
    import app.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
