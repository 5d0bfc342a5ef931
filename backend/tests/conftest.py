import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from tourfleet.domain.availability import db_models as availability_db_models  # noqa: F401
from tourfleet.domain.availability_rules import db_models as rule_db_models  # noqa: F401
from tourfleet.domain.bookings import db_models as booking_db_models  # noqa: F401
from tourfleet.domain.vehicles import db_models as vehicle_db_models  # noqa: F401
from tourfleet.infra.db import Base, configure_sqlite_write_locking, get_db_session
from tourfleet.main import app
from tourfleet.settings import settings


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session")
def test_engine(tmp_path_factory):
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        connect_args={"check_same_thread": False, "timeout": 30},
        poolclass=StaticPool,
    )

    async def init_models() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(init_models())
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture(scope="session")
def async_session_maker(test_engine):
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest.fixture()
def concurrent_session_maker(tmp_path):
    """Sessions on separate SQLite connections so writers really contend for the file lock."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'concurrent.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        poolclass=NullPool,
    )
    configure_sqlite_write_locking(engine)

    async def init_models() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(init_models())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture(autouse=True)
def restore_settings():
    original = {
        "app_env": settings.app_env,
        "testing": settings.testing,
        "metrics_enabled": settings.metrics_enabled,
        "metrics_token": settings.metrics_token,
        "operating_day_start": settings.operating_day_start,
        "operating_day_end": settings.operating_day_end,
        "hold_expiration_minutes": settings.hold_expiration_minutes,
        "buffer_minutes": settings.buffer_minutes,
        "slot_step_minutes": settings.slot_step_minutes,
    }
    settings.testing = True
    settings.app_env = "dev"
    yield
    for key, value in original.items():
        setattr(settings, key, value)


@pytest.fixture(autouse=True)
def clean_database(test_engine):
    async def truncate_tables() -> None:
        async with test_engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                await conn.execute(table.delete())

    asyncio.run(truncate_tables())
    yield


@pytest.fixture()
def client(async_session_maker):
    async def override_db_session():
        async with async_session_maker() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    original_factory = getattr(app.state, "db_session_factory", None)
    app.state.db_session_factory = async_session_maker
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    app.state.db_session_factory = original_factory
