from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from .config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

# expire_on_commit=False: после commit объекты отдаются в схемы без ленивых загрузок
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Сессия на один запрос. Незакоммиченная транзакция откатывается,
    если обработчик упал.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def create_tables(metadata) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


async def close_engine() -> None:
    await engine.dispose()
