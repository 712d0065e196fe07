"""Pytest fixtures for the videotube backend."""

import os

os.environ["APP_ENV"] = "test"
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("MEDIA_PUBLIC_BASE_URL", "https://media.test/videotube")

from collections.abc import AsyncIterator, Iterator  # noqa: E402
from io import BytesIO  # noqa: E402
from pathlib import Path  # noqa: E402

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from api.deps import get_db, get_media_storage  # noqa: E402
from app import create_app  # noqa: E402
from core.config import settings  # noqa: E402
from services import MediaStorage, MediaStorageConfig, RateLimiter, set_rate_limiter  # noqa: E402

PASSWORD = "Sup3rSecret!"


def _run_alembic_migrations(database_url: str) -> None:
    """Apply Alembic migrations to the given database URL."""
    backend_dir = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(backend_dir / "alembic"))
    alembic_cfg.attributes["configure_logger"] = False

    original_database_url = settings.database_url
    try:
        settings.database_url = database_url
        command.upgrade(alembic_cfg, "head")
    finally:
        settings.database_url = original_database_url


@pytest.fixture(scope="session")
def test_database_url(tmp_path_factory) -> str:
    """Create and migrate a file-backed SQLite database for tests."""
    db_dir = tmp_path_factory.mktemp("sqlite")
    db_path = db_dir / "backend-test.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    _run_alembic_migrations(database_url)
    return database_url


@pytest_asyncio.fixture()
async def test_engine(test_database_url: str) -> AsyncIterator:
    """Create an async engine bound to the migrated SQLite test database."""
    engine = create_async_engine(
        test_database_url,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to the test engine."""
    return async_sessionmaker(test_engine, expire_on_commit=False)


class FakeMinioClient:
    """In-memory stand-in for the MinIO client used by MediaStorage."""

    def __init__(self) -> None:
        self.buckets: set[str] = set()
        self.objects: dict[str, bytes] = {}
        self.removed: list[str] = []
        self.fail_uploads = False

    def bucket_exists(self, bucket_name: str) -> bool:
        return bucket_name in self.buckets

    def make_bucket(self, bucket_name: str) -> None:
        self.buckets.add(bucket_name)

    def fput_object(self, bucket_name, object_name, file_path, content_type=None):
        if self.fail_uploads:
            raise OSError("storage offline")
        self.objects[object_name] = Path(file_path).read_bytes()

    def remove_object(self, bucket_name, object_name):
        self.removed.append(object_name)
        self.objects.pop(object_name, None)


@pytest.fixture()
def minio_client() -> FakeMinioClient:
    return FakeMinioClient()


@pytest.fixture()
def media_storage(minio_client: FakeMinioClient) -> MediaStorage:
    return MediaStorage(MediaStorageConfig.from_settings(settings), client=minio_client)  # type: ignore[arg-type]


@pytest.fixture()
def app(session_maker, media_storage: MediaStorage) -> Iterator[FastAPI]:
    """Create the FastAPI app with test database and media storage overrides."""
    application = create_app()

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_media_storage] = lambda: media_storage
    yield application


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture(autouse=True)
async def clean_database(session_maker) -> AsyncIterator[None]:
    """Clear tables before each test to guarantee isolation."""
    async with session_maker() as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            await session.execute(table.delete())
        await session.commit()
    yield


@pytest_asyncio.fixture()
async def db_session(session_maker) -> AsyncIterator[AsyncSession]:
    """Provide a raw database session to tests."""
    async with session_maker() as session:
        yield session


class _InMemoryRedis:
    def __init__(self) -> None:
        self.data: dict[str, int] = {}

    async def incr(self, key: str) -> int:
        value = self.data.get(key, 0) + 1
        self.data[key] = value
        return value

    async def expire(self, key: str, ttl: int) -> None:  # pragma: no cover - noop
        return None


@pytest.fixture(autouse=True)
def _rate_limiter_stub() -> Iterator[None]:
    limiter = RateLimiter(_InMemoryRedis(), limit=1_000, window_seconds=60)
    set_rate_limiter(limiter)
    yield
    set_rate_limiter(None)


def make_png_bytes(size: tuple[int, int] = (32, 32), color=(255, 0, 0)) -> bytes:
    image = Image.new("RGB", size, color=color)
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    return make_png_bytes()
