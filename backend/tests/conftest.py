import os
import tempfile

# Point the app at a throwaway SQLite file before anything imports db.database
_DB_DIR = tempfile.mkdtemp(prefix="inventory-tests-")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(_DB_DIR, "test.db")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENABLE_ROW_SECURITY"] = "False"

import uuid  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402

from db.database import Base, User, async_session_maker, engine  # noqa: E402
from main import app  # noqa: E402
from services.inventory import Caller  # noqa: E402

PASSWORD = "correct-horse-battery"


@pytest.fixture
async def tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture
async def db(tables):
    async with async_session_maker() as session:
        yield session


async def _make_user(db, email: str) -> User:
    user = User(id=uuid.uuid4(), email=email, hashed_password="not-a-real-hash")
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def alice(db) -> Caller:
    user = await _make_user(db, "alice@example.com")
    return Caller(user_id=user.id)


@pytest.fixture
async def bob(db) -> Caller:
    user = await _make_user(db, "bob@example.com")
    return Caller(user_id=user.id)


@pytest.fixture
async def client(tables):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def auth_headers(client: httpx.AsyncClient, email: str, password: str = PASSWORD) -> dict:
    """Register through fastapi-users and return bearer headers."""
    resp = await client.post("/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = await client.post("/auth/jwt/login", data={"username": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
