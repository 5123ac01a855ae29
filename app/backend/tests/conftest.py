from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from costing.core.cache import CostingCache, get_costing_cache
from costing.db.base import Base
from costing.db.dependencies import get_session_factory
import costing.models.entities  # noqa: F401
from costing.main import create_app


@pytest.fixture()
def session_factory(tmp_path: Path) -> Generator[sessionmaker[Session], None, None]:
    # File-backed so the concurrent snapshot reads each get their own connection.
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'costing.db'}",
        connect_args={"check_same_thread": False},
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def redis_server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest.fixture()
def costing_cache(redis_server: fakeredis.FakeServer) -> CostingCache:
    return CostingCache(fakeredis.FakeAsyncRedis(server=redis_server))


@pytest.fixture()
def client(
    session_factory: sessionmaker[Session],
    costing_cache: CostingCache,
) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_session_factory() -> sessionmaker[Session]:
        return session_factory

    def override_cache() -> CostingCache:
        return costing_cache

    app.dependency_overrides[get_session_factory] = override_session_factory
    app.dependency_overrides[get_costing_cache] = override_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
