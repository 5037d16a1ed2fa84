import logging
from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from folio.middleware import count_statements

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """
    Owns the process-wide engine (and therefore the connection pool).

    ``connect`` is called once from the application lifespan and
    ``disconnect`` once at shutdown; request handlers only ever borrow
    sessions from the shared pool through ``get_db``.
    """

    def __init__(self) -> None:
        self.engine: AsyncEngine | None = None
        self.sessionmaker: async_sessionmaker[AsyncSession] | None = None

    def connect(self, url: str, **engine_kwargs) -> None:
        engine_kwargs.setdefault("pool_pre_ping", True)
        self.engine = create_async_engine(url, **engine_kwargs)
        count_statements(self.engine)
        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Database engine created for %s", self.engine.url.render_as_string(hide_password=True))

    async def create_all(self) -> None:
        # Import the models so their tables are registered on Base.metadata.
        import folio.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def disconnect(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database engine disposed")
        self.engine = None
        self.sessionmaker = None


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    database: Database = request.app.state.database
    async with database.sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
