from datetime import datetime, timedelta, timezone

import httpx
import pytest

from cineflix.application import create_app
from cineflix.core.config import Settings
from cineflix.core.init_db import ensure_schema
from cineflix.models.access_code import AccessCode

TEST_SECRET = "test-secret-that-is-long-enough-for-hs256!"


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeTMDB:
    """Routes httpx.MockTransport requests to canned TMDB payloads."""

    def __init__(self):
        self.calls: list[httpx.Request] = []
        self.responses: dict[str, httpx.Response] = {}

    def set(self, path: str, status: int = 200, json=None, text: str | None = None) -> None:
        if text is not None:
            self.responses[path] = httpx.Response(status, text=text, headers={"content-type": "text/html"})
        else:
            self.responses[path] = httpx.Response(status, json=json if json is not None else {})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path.removeprefix("/3")
        if path in self.responses:
            return self.responses[path]
        return httpx.Response(404, json={"status_message": "The resource you requested could not be found."})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        ENV="test",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'cineflix.db'}",
        JWT_SECRET=TEST_SECRET,
        TMDB_API_KEY="tmdb-test-key",
        TMDB_BACKOFF_SEC=0,
        RATE_LIMIT_AUTH_PER_MIN=5,
        CORS_ALLOW_ORIGINS="*",
    )


@pytest.fixture
def tmdb():
    return FakeTMDB()


@pytest.fixture
async def app(settings, clock, tmdb):
    app = create_app(settings, clock=clock, tmdb_transport=httpx.MockTransport(tmdb.handler))
    await ensure_schema(app.state.engine)
    yield app
    await app.state.tmdb.close()
    await app.state.engine.dispose()


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest.fixture
async def db(app):
    async with app.state.sessionmaker() as session:
        yield session


@pytest.fixture
def access(app):
    return app.state.access_service


@pytest.fixture
def seed_code(db, clock):
    async def _seed(code: str, valid_for: timedelta = timedelta(hours=1)) -> AccessCode:
        row = AccessCode(code=code, valid_until=clock() + valid_for, created_at=clock())
        db.add(row)
        await db.commit()
        return row

    return _seed
