import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from finediet.auth.jwt import create_access_token
from finediet.auth.service import hash_password
from finediet.database import get_db
from finediet.main import create_app
from finediet.models.base import Base
from finediet.outbox import service as outbox_service
from finediet.users.models import User

TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(TEST_DATABASE_URL, echo=False)
test_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client():
    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def db():
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def session_factory():
    return test_session_factory


async def create_user(email: str, role: str = "user", password: str = "securepass123") -> User:
    async with test_session_factory() as session:
        user = User(email=email, password_hash=hash_password(password), role=role)
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


def headers_for(user: User) -> dict:
    token = create_access_token(str(user.id), user.effective_role)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def member():
    return await create_user("member@myfinediet.com")


@pytest_asyncio.fixture
async def auth_headers(member: User):
    return headers_for(member)


@pytest_asyncio.fixture
async def editor_headers():
    return headers_for(await create_user("editor@myfinediet.com", role="editor"))


@pytest_asyncio.fixture
async def admin_headers():
    return headers_for(await create_user("admin@myfinediet.com", role="admin"))


@pytest.fixture
def webhook_calls(monkeypatch):
    """Route outbound webhook POSTs to an in-memory receiver.

    Set ``webhook_calls.status`` to change the reply code; each request body
    is appended to ``webhook_calls.requests``.
    """

    class Receiver:
        status = 200
        requests: list[httpx.Request] = []

    receiver = Receiver()
    receiver.requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        receiver.requests.append(request)
        return httpx.Response(receiver.status, text="ok" if receiver.status < 400 else "receiver error")

    monkeypatch.setattr(
        outbox_service,
        "_http_client",
        lambda timeout: httpx.AsyncClient(transport=httpx.MockTransport(handler), timeout=timeout),
    )
    return receiver
