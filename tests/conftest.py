"""Shared fixtures: in-memory SQLite, repository, and an app wired to fakes."""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
os.environ.setdefault("AZURE_OPENAI_ENDPOINT", "https://example-openai.openai.azure.com")
os.environ.setdefault("AZURE_OPENAI_DEPLOYMENT", "gpt-35-turbo")
os.environ.setdefault("AZURE_OPENAI_API_VERSION", "2024-02-01")
os.environ.setdefault("AZURE_OPENAI_API_KEY", "test-api-key")

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from chatclone.database import Base  # noqa: E402
from chatclone.models import Conversation, Message, User  # noqa: E402,F401
from chatclone.repositories.chat_repository import ChatRepository  # noqa: E402


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repo(db):
    return ChatRepository(db)


@pytest.fixture
def user(repo):
    return repo.create_user(
        email="ada@example.com",
        name="Ada",
        google_id="google-sub-ada",
        picture="https://example.com/ada.png",
    )


@pytest.fixture
def provider():
    from tests.fakes import ScriptedProvider, completion_response

    return ScriptedProvider([(200, completion_response())])


@pytest.fixture
def verifier():
    from chatclone.services.google_verifier import GoogleIdentity
    from tests.fakes import FakeVerifier

    return FakeVerifier(
        {
            "google-id-token-grace": GoogleIdentity(
                subject_id="google-sub-grace",
                email="grace@example.com",
                name="Grace Hopper",
                picture="https://example.com/grace.png",
            ),
            "google-id-token-noname": GoogleIdentity(
                subject_id="google-sub-noname",
                email="linus@example.com",
            ),
        }
    )


@pytest.fixture
def app(session_factory, provider, verifier):
    from chatclone.database import get_db
    from chatclone.main import create_app
    from chatclone.services.completion_client import get_completion_client
    from chatclone.services.google_verifier import get_google_verifier
    from tests.fakes import make_completion_client

    application = create_app()

    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_db
    application.dependency_overrides[get_completion_client] = lambda: make_completion_client(provider)
    application.dependency_overrides[get_google_verifier] = lambda: verifier
    return application


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(user):
    from chatclone.auth import create_access_token

    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
