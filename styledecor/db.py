from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .config import DATABASE_URL


def get_engine(database_url: str, **kwargs):
    return create_async_engine(database_url, echo=False, future=True, **kwargs)


def get_session(engine):
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
    )


Base = declarative_base()

engine = get_engine(DATABASE_URL)
SessionLocal = get_session(engine)


async def get_db():
    async with SessionLocal() as session:
        yield session
