"""Test fixtures — a fresh app and in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test builds its own app from explicit test Settings, pointed at
   an in-memory SQLite database (aiosqlite), and creates the tables.
2. The mail provider is replaced by RecordingMailer, which keeps every
   reset link it was asked to send instead of talking to the network.
3. httpx.AsyncClient talks to the app in-process over ASGITransport and
   keeps cookies between requests, like a browser would.

Nothing survives a test, so there is no cross-test pollution.
"""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from inkpress.config import Settings
from inkpress.db.models import Base
from inkpress.main import create_app


class RecordingMailer:
    """Stands in for the mail provider; records sends, optionally fails."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent: list[dict] = []

    async def send_password_reset(self, to_email: str, link: str, name: str) -> bool:
        self.sent.append({"to": to_email, "link": link, "name": name})
        return self.succeed

    @property
    def last_token(self) -> str:
        return self.sent[-1]["link"].rsplit("/", 1)[1]


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite://",
        "session_secret": "test-session-secret",
        "reset_secret": "test-reset-secret",
        "bcrypt_rounds": 4,  # bcrypt minimum; keeps the suite fast
        "client_url": "http://client.test/resetpassword",
        "environment": "development",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest_asyncio.fixture()
async def settings():
    return make_settings()


@pytest_asyncio.fixture()
async def mailer():
    return RecordingMailer()


@pytest_asyncio.fixture()
async def app(settings, mailer):
    app = create_app(settings, mailer=mailer)
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield app
    app.dependency_overrides.clear()
    await app.state.engine.dispose()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def db_session(app):
    """Direct session on the same database the app uses."""
    async with app.state.session_factory() as session:
        yield session


async def register(client, name="Ann", email="ann@x.com", password="password1"):
    return await client.post(
        "/api/auth/signup",
        json={"name": name, "email": email, "password": password},
    )


async def sign_in(client, email="ann@x.com", password="password1"):
    return await client.post(
        "/api/auth/signin",
        json={"email": email, "password": password},
    )
