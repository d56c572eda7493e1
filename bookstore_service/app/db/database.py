# bookstore_service/app/db/database.py
import logging
from typing import Optional

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from db.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Базовый класс для моделей
Base = declarative_base()


class Database:
    """Handle to one named database on a connected engine."""

    def __init__(self, engine: AsyncEngine, name: Optional[str] = None):
        self.name = name
        if name:
            # таблицы без схемы попадают в схему с именем базы
            engine = engine.execution_options(schema_translate_map={None: name})
        self.engine = engine
        self.sessionmaker = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    def session(self) -> AsyncSession:
        return self.sessionmaker()


class StoreClient:
    """
    Owns the single connection pool of the process.

    Built once at startup and handed to whoever needs it; ``connect`` is
    idempotent so every caller shares the same engine.
    """

    def __init__(self, url: Optional[str], echo: bool = False, **engine_options):
        if not url:
            raise ConfigurationError("Database URL is not set")
        self.url = url
        self.echo = echo
        self.engine_options = engine_options
        self._engine: Optional[AsyncEngine] = None

    def connect(self) -> AsyncEngine:
        if self._engine is None:
            options = dict(self.engine_options)
            parsed = make_url(self.url)
            if parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:"):
                # in-memory SQLite живёт ровно одно соединение
                options.setdefault("poolclass", StaticPool)
                options.setdefault("connect_args", {"check_same_thread": False})
            self._engine = create_async_engine(self.url, echo=self.echo, **options)
            logger.info("Connected engine for %s", parsed.render_as_string(hide_password=True))
        return self._engine

    def database(self, name: Optional[str] = None) -> Database:
        return Database(self.connect(), name)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            logger.info("Engine disposed")


# Генератор сессий
async def get_db(request: Request):
    async with request.app.state.db.session() as session:
        yield session
