"""
Shared pytest fixtures.

Every test gets its own in-memory SQLite database and, for the disk backend,
its own storage root under tmp_path.
"""

import base64

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from studynest.config import Settings
from studynest.database import Database
from studynest.main import create_app
from studynest.models.page import Page
from studynest.models.user import User
from studynest.services.attachments import AttachmentManager
from studynest.services.blob_store import get_blob_store
from studynest.services.locks import KeyedLocks
from studynest.services.passwords import hash_password

PDF_BYTES = b"%PDF-1.4\n" + b"0123456789abcdef" * 50
PDF_B64 = base64.b64encode(PDF_BYTES).decode("ascii")


# ============================================================================
# Settings / storage
# ============================================================================

@pytest.fixture
def storage_type():
    """Blob backend under test. Override with @pytest.mark.parametrize."""
    return "inline"


@pytest.fixture
def app_settings(tmp_path, storage_type):
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite+aiosqlite://",
        FILE_STORAGE_TYPE=storage_type,
        FILE_STORAGE_PATH=str(tmp_path / "uploads"),
        ADMIN_PASSWORD="",
        REGISTRATION_MODE="public",
        CORS_ORIGINS="http://localhost:5173",
    )


@pytest.fixture
def blob_store(app_settings):
    return get_blob_store(app_settings)


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
async def database():
    db = Database(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session_factory() as s:
        yield s


async def seed_user(database, username, role, password="secret", rollno="r-1", plaintext=False):
    """Insert a user directly. plaintext=True stores a legacy unhashed password."""
    async with database.session_factory() as s:
        stored = password if plaintext else hash_password(password)
        s.add(User(username=username, password=stored, role=role, rollno=rollno))
        await s.commit()


async def seed_page(database, name, semester=1):
    async with database.session_factory() as s:
        s.add(Page(name=name, semester=semester))
        await s.commit()


@pytest.fixture
def teacher():
    """Transient teacher for service-level calls; not persisted."""
    return User(username="ms.frizzle", password="x", role="teacher", rollno="t-1")


@pytest.fixture
def student():
    return User(username="arnold", password="x", role="student", rollno="s-1")


@pytest.fixture
def locks():
    return KeyedLocks()


@pytest.fixture
def manager(session, blob_store, app_settings, locks):
    return AttachmentManager(
        session,
        blob_store,
        max_encoded_bytes=app_settings.MAX_ENCODED_PAYLOAD_BYTES,
        locks=locks,
    )


# ============================================================================
# HTTP client
# ============================================================================

@pytest.fixture
async def app(app_settings, database):
    application = create_app(app_settings, database=database)
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
async def teacher_headers(database):
    await seed_user(database, "ms.frizzle", "teacher")
    return {"x-username": "ms.frizzle"}


@pytest.fixture
async def student_headers(database):
    await seed_user(database, "arnold", "student")
    return {"x-username": "arnold"}
