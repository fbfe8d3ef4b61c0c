import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from expense_tracker.core.jwt_config import create_access_token
from expense_tracker.db.base import Base
from expense_tracker.db.session import get_db
from expense_tracker.main import app
from expense_tracker.schemas.user import UserCreate
from expense_tracker.services.user_service import create_user


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def users(db):
    """alice, bob and carol, registered in that order."""
    created = {}
    for name in ("alice", "bob", "carol"):
        created[name] = await create_user(
            db,
            UserCreate(email=f"{name}@example.com", password="secret123", display_name=name.title()),
        )
    return created


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


async def register_and_login(client, name):
    email = f"{name}@example.com"
    resp = await client.post(
        "/api/v1/users/register",
        json={"email": email, "password": "secret123", "display_name": name.title()},
    )
    assert resp.status_code == 200, resp.text
    user_id = resp.json()["id"]

    resp = await client.post("/api/v1/users/login", json={"email": email, "password": "secret123"})
    assert resp.status_code == 200, resp.text
    return user_id, {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}


@pytest.fixture
async def api_users(client):
    """Registers alice, bob and carol through the API: name -> (id, auth headers)."""
    result = {}
    for name in ("alice", "bob", "carol"):
        result[name] = await register_and_login(client, name)
    # headers decide who is acting, not the last login's cookies
    client.cookies.clear()
    return result
