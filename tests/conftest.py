import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "0")
os.environ.setdefault("SITE_DOMAIN", "http://frontend.test")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from styledecor.clients import get_payment_processor
from styledecor.db import Base, get_db, get_engine, get_session
from styledecor.main import app
from styledecor.redis_client import set_redis

from support import FakeProcessor


@pytest.fixture(autouse=True)
def fake_redis():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    set_redis(client)
    yield client
    set_redis(None)


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "styledecor.db"
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(engine)
    engine.dispose()
    return path


@pytest.fixture
def db_sync(db_path):
    engine = create_engine(f"sqlite:///{db_path}")
    with Session(engine, expire_on_commit=False) as session:
        yield session
    engine.dispose()


@pytest.fixture
def session_factory(db_path):
    engine = get_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return get_session(engine)


@pytest.fixture
def processor():
    return FakeProcessor()


@pytest.fixture
def client(session_factory, processor):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_processor] = lambda: processor
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
