"""
Test infrastructure for the Folio API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- ASGITransport does not run the lifespan, so the test database, asset store
  and mailer are placed on ``app.state`` here instead.  The asset store and
  mailer are the in-memory doubles, recreated for every test.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- Cookies are marked non-secure so the httpx cookie jar sends them back over
  the plain ``http://test`` transport.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from folio.config import Settings
from folio.database import Database
from folio.main import create_app
from folio.services.assets import InMemoryAssetStore
from folio.services.mailer import InMemoryMailer

# ---------------------------------------------------------------------------
# Test application: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "correct-horse-battery"

test_settings = Settings(
    DATABASE_URL=TEST_DATABASE_URL,
    SECRET_KEY="test-secret-key-0123456789abcdef0123456789",
    COOKIE_SECURE=False,
    ALLOWED_ORIGINS=["http://localhost:3000"],
    SMTP_FROM_EMAIL="noreply@example.com",
    CONTACT_TO_EMAIL="owner@example.com",
)

app = create_app(test_settings)

database = Database()
database.connect(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
app.state.database = database


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    await database.create_all()
    yield
    await database.drop_all()


@pytest.fixture(autouse=True)
def assets() -> InMemoryAssetStore:
    store = InMemoryAssetStore()
    app.state.asset_store = store
    return store


@pytest.fixture(autouse=True)
def mailer() -> InMemoryMailer:
    outbox = InMemoryMailer()
    app.state.mailer = outbox
    return outbox


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that call services directly.
    """
    async with database.sessionmaker() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def login(async_client: AsyncClient):
    """Return a coroutine that logs *username* in and returns their id."""

    async def _login(username: str, password: str = TEST_PASSWORD) -> int:
        resp = await async_client.post("/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["id"]

    return _login


@pytest.fixture
def signup(async_client: AsyncClient, login):
    """
    Return a coroutine that registers *username* and logs in as them.

    The client's cookie jar then holds that user's session; logging in as
    someone else switches the active session.
    """

    async def _signup(username: str, password: str = TEST_PASSWORD) -> int:
        resp = await async_client.post("/register", json={
            "username": username,
            "password": password,
            "confirmPassword": password,
        })
        assert resp.status_code == 200, resp.text
        return await login(username, password)

    return _signup
