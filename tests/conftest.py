import os
import tempfile

# Point the stream store at a throwaway SQLite file before acemux is imported;
# the engine is built from settings at import time.
_tmpdir = tempfile.mkdtemp(prefix="acemux-tests-")
os.environ["DB_PATH"] = os.path.join(_tmpdir, "db.sqlite")
os.environ.setdefault("ACESTREAM_BASE", "http://acestream:6878/")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from acemux.api.deps import get_engine_client, get_http_client  # noqa: E402
from acemux.api.main import app  # noqa: E402
from acemux.db.models import Base  # noqa: E402
from acemux.db.session import engine  # noqa: E402


@pytest.fixture
def fresh_db():
    """Empty streams table for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(fresh_db):
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def upstream(client):
    """Route the proxy and engine clients through an httpx.MockTransport.

    Tests set ``upstream.handler`` to a callable taking an httpx.Request.
    Every request seen is appended to ``upstream.requests``.
    """

    class Upstream:
        handler = None
        requests = []

        def __call__(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return self.handler(request)

    state = Upstream()
    state.requests = []
    transport = httpx.MockTransport(state)
    proxy_client = httpx.AsyncClient(transport=transport)
    engine_client = httpx.AsyncClient(transport=transport, base_url="http://acestream:6878")

    app.dependency_overrides[get_http_client] = lambda: proxy_client
    app.dependency_overrides[get_engine_client] = lambda: engine_client
    yield state
