import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from openai.types.chat import ChatCompletionChunk  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from parrita.db import get_db, get_session_factory  # noqa: E402
from parrita.main import app  # noqa: E402
from parrita.models import Base  # noqa: E402
from parrita.routes.chat import get_notifier  # noqa: E402
from parrita.services.ai_gateway import get_gateway  # noqa: E402
from parrita.services.webhooks import WebhookNotifier  # noqa: E402


# ---------------- AI GATEWAY FAKES ----------------

def make_chunk(content=None, finish_reason=None):
    delta = {"content": content} if content is not None else {}
    return ChatCompletionChunk.model_validate({
        "id": "chatcmpl-test",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": "test-model",
        "choices": [
            {"index": 0, "delta": delta, "finish_reason": finish_reason}
        ],
    })


class FakeStream:

    def __init__(self, chunks):
        self.chunks = chunks
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self.chunks:
            yield chunk

    async def close(self):
        self.closed = True


class FakeGateway:

    def __init__(self, reply=("Bonjour", " ! Vous travaillez dans quel secteur ?"), error=None):
        self.reply = reply
        self.error = error
        self.calls = []
        self.streams = []

    async def open_stream(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error

        chunks = [make_chunk(text) for text in self.reply]
        chunks.append(make_chunk(finish_reason="stop"))

        stream = FakeStream(chunks)
        self.streams.append(stream)
        return stream


# ---------------- DATABASE ----------------

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# ---------------- COLLABORATORS ----------------

@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def webhook_requests():
    return []


@pytest.fixture
def notifier(session_factory, webhook_requests):

    def handler(request):
        webhook_requests.append(request)
        return httpx.Response(200, json={"ok": True})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebhookNotifier(session_factory, client=client)


# ---------------- APP ----------------

@pytest.fixture
def client(session_factory, gateway, notifier):

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_notifier] = lambda: notifier

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
