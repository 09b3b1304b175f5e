"""Test configuration and fixtures."""

import os
import sys
import tempfile
from typing import Any

# Settings are cached on first use; point them at throwaway resources first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOGS_DIR"] = tempfile.mkdtemp(prefix="radar-test-logs-")
os.environ["YOUTUBE_API_KEY"] = ""
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["CRON_SECRET"] = ""

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from radar.core.db import Base, get_db_session
from radar.core.deps import get_http
from radar.core.errors import FetchError
from radar.main import app
from radar.models.schema import Source, Topic
from radar.repositories.content_store import SqlAlchemyContentStore
from radar.utils.error_logger import reset_fetch_metrics


class FakeHttp:
    """Canned stand-in for HttpService; unknown URLs answer with a 404 FetchError."""

    def __init__(self):
        self.routes: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, dict | None]] = []

    def add(
        self,
        url: str,
        body: str = "",
        *,
        content_type: str = "text/html",
        json: Any = None,
        error: Exception | None = None,
    ) -> "FakeHttp":
        self.routes[url] = {
            "body": body,
            "content_type": content_type,
            "json": json,
            "error": error,
        }
        return self

    def _route(self, url: str, params: dict | None) -> dict[str, Any]:
        self.calls.append((url, params))
        route = self.routes.get(url)
        if route is None:
            raise FetchError(f"HTTP 404 for {url}", url=url, status_code=404)
        if route["error"] is not None:
            raise route["error"]
        return route

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]

    def fetch(self, url, *, params=None, headers=None):
        route = self._route(url, params)
        return httpx.Response(
            200,
            content=route["body"].encode("utf-8"),
            headers={"content-type": route["content_type"]},
        )

    def fetch_text(self, url, **kwargs):
        route = self._route(url, kwargs.get("params"))
        return route["body"], route["content_type"].lower()

    def fetch_json(self, url, **kwargs):
        params = kwargs.get("params")
        route = self._route(url, params)
        payload = route["json"]
        return payload(params) if callable(payload) else payload


@pytest.fixture
def fake_http():
    return FakeHttp()


@pytest.fixture(autouse=True)
def _clear_fetch_metrics():
    reset_fetch_metrics()
    yield
    reset_fetch_metrics()


@pytest.fixture
def test_db():
    """Create a test database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(test_db):
    """Create a test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_db)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db_session):
    return SqlAlchemyContentStore(db_session)


@pytest.fixture
def make_source(db_session):
    """Factory persisting a Source row."""

    def _make_source(
        source_type: str,
        url: str,
        *,
        account_id: str = "acct-1",
        name: str = "",
        metadata: dict | None = None,
        is_active: bool = True,
        channel_id: str | None = None,
        topic_id: str | None = None,
    ) -> Source:
        source = Source(
            account_id=account_id,
            type=source_type,
            name=name,
            url=url,
            source_metadata=metadata or {},
            is_active=is_active,
            channel_id=channel_id,
            topic_id=topic_id,
        )
        db_session.add(source)
        db_session.commit()
        db_session.refresh(source)
        return source

    return _make_source


@pytest.fixture
def make_topic(db_session):
    def _make_topic(name: str, *, account_id: str = "acct-1") -> Topic:
        topic = Topic(account_id=account_id, name=name)
        db_session.add(topic)
        db_session.commit()
        db_session.refresh(topic)
        return topic

    return _make_topic


@pytest.fixture
def client(db_session, fake_http):
    """Create a test client with database and HTTP overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_http] = lambda: fake_http

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
