import os

os.environ.setdefault("SECRET_KEY", "test-secret")

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pathfinder.api.results import get_http_client
from pathfinder.core.auth import create_token, hash_password
from pathfinder.core.cache import get_cache
from pathfinder.core.database import Base, get_db
from pathfinder.main import app
from pathfinder.models.orm import Module, Question, Track, User


class FakeCache:
    """In-memory stand-in for the daily generation quota."""

    def __init__(self, limit: int = 20):
        self.limit = limit
        self.counts = {}

    async def can_generate(self, user_id: str) -> bool:
        return self.counts.get(user_id, 0) < self.limit

    async def bump_generation(self, user_id: str) -> None:
        self.counts[user_id] = self.counts.get(user_id, 0) + 1


class ModelStub:
    """Answers text-generation calls through httpx.MockTransport."""

    def __init__(self):
        self.status_code = 200
        self.payload = [{"generated_text": "Solid results.\nCareer path: Network Engineer\n1. Study routing\n2. Get certified"}]
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_cache():
    return FakeCache()


@pytest.fixture
def model_stub():
    return ModelStub()


@pytest.fixture
async def client(session_factory, fake_cache, model_stub):
    async def override_db():
        async with session_factory() as session:
            yield session

    async def override_http():
        async with httpx.AsyncClient(transport=httpx.MockTransport(model_stub)) as http:
            yield http

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_cache] = lambda: fake_cache
    app.dependency_overrides[get_http_client] = override_http
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def corpus(db):
    """Two tagged questions and four tracks, committed."""
    questions = [
        Question(id="q-net", stem="Which device routes packets?", tags=["network"], options=["A", "B"], correct="B"),
        Question(id="q-sec", stem="Which attack floods a service?", tags=["security"], options=["A", "B"], correct="A"),
    ]
    tracks = [
        Track(title="Network Fundamentals", description="Routing and switching", difficulty="beginner"),
        Track(title="Cloud Basics", description="Compute and storage", difficulty="beginner"),
        Track(title="Python Programming", description="Programming logic", difficulty="beginner"),
        Track(title="Data Analysis", description="Spreadsheets and SQL", difficulty="intermediate"),
    ]
    tracks[0].modules = [Module(type="lesson", order=0), Module(type="quiz", order=1)]
    db.add_all(questions)
    # one flush per track keeps created_at strictly increasing
    for track in tracks:
        db.add(track)
        await db.flush()
    await db.commit()
    return {"questions": questions, "tracks": tracks}


@pytest.fixture
async def professional(db):
    user = User(name="Pat Pro", email="pat@example.com", password_hash=hash_password("secret"), role="IT Professional")
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
def auth_header():
    def make(user_id: str, role: str = "student") -> dict:
        return {"Authorization": f"Bearer {create_token(user_id, role)}"}
    return make
