"""
Shared fixtures for UCalgaryConnect tests.

Tests run against an in-memory SQLite database. Supabase Auth is replaced by
an httpx.MockTransport that knows a handful of bearer tokens, so the real
SupabaseAuthClient code path is exercised without network access.
"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from ucconnect.api.main import create_app
from ucconnect.config import Settings
from ucconnect.models.database import create_db_engine, create_session_factory, init_db
from ucconnect.services.auth_service import SupabaseAuthClient
from ucconnect.services.connection_service import ConnectionService
from ucconnect.services.profile_service import ProfileService

SUPABASE_URL = "https://example.supabase.co"

# token -> Supabase user record
USERS = {
    "token-alice": {"id": "alice", "email": "alice@ucalgary.ca"},
    "token-bob": {"id": "bob", "email": "bob@ucalgary.ca"},
    "token-carol": {"id": "carol", "email": "carol@ucalgary.ca"},
    "token-dave": {"id": "dave", "email": "dave@ucalgary.ca"},
}

# email -> (password, token)
PASSWORDS = {
    "alice@ucalgary.ca": ("hunter22", "token-alice"),
    "bob@ucalgary.ca": ("hunter22", "token-bob"),
}


def fake_supabase(request: httpx.Request) -> httpx.Response:
    """Minimal stand-in for the Supabase Auth REST API."""
    path = request.url.path
    auth = request.headers.get("Authorization", "")
    token = auth[len("Bearer "):] if auth.startswith("Bearer ") else None

    if request.headers.get("apikey") != "anon-key":
        return httpx.Response(401, json={"message": "Invalid API key"})

    if path == "/auth/v1/user":
        if token not in USERS:
            return httpx.Response(401, json={"msg": "invalid JWT"})
        return httpx.Response(200, json=USERS[token])

    if path == "/auth/v1/token":
        body = json.loads(request.content)
        password, token = PASSWORDS.get(body.get("email"), (None, None))
        if password is None or body.get("password") != password:
            return httpx.Response(400, json={"error_description": "Invalid login credentials"})
        return httpx.Response(200, json={
            "access_token": token,
            "refresh_token": f"refresh-{token}",
            "expires_in": 3600,
            "token_type": "bearer",
            "user": USERS[token],
        })

    if path == "/auth/v1/signup":
        body = json.loads(request.content)
        if body.get("email") in PASSWORDS:
            return httpx.Response(422, json={"msg": "User already registered"})
        return httpx.Response(200, json={"id": "new-user", "email": body.get("email")})

    if path == "/auth/v1/logout":
        if token not in USERS:
            return httpx.Response(401, json={"msg": "invalid JWT"})
        return httpx.Response(204)

    return httpx.Response(404)


def auth_headers(user: str) -> dict:
    return {"Authorization": f"Bearer token-{user}"}


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        supabase_url=SUPABASE_URL,
        supabase_anon_key="anon-key",
        rate_limit_enabled=False,
        log_level="WARNING",
    )


@pytest.fixture
def session_factory(settings):
    engine = create_db_engine(settings=settings)
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def auth_client():
    return SupabaseAuthClient(
        SUPABASE_URL, "anon-key", transport=httpx.MockTransport(fake_supabase)
    )


@pytest.fixture
def profiles(session_factory):
    return ProfileService(session_factory)


@pytest.fixture
def connections(session_factory):
    return ConnectionService(session_factory)


@pytest.fixture
def app(settings, session_factory, auth_client):
    return create_app(settings, session_factory=session_factory, auth_client=auth_client)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def complete_profile_fields(name: str, **overrides) -> dict:
    fields = {
        "full_name": name,
        "faculty": "Science",
        "major": "Computer Science",
        "courses": ["CPSC 471"],
        "skills": ["Python"],
        "interests": ["hackathons"],
        "bio": f"Hi, I'm {name}.",
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def students(profiles):
    """Complete profiles for alice, bob and carol. dave has none."""
    profiles.upsert_profile("alice", complete_profile_fields(
        "Alice Nguyen", courses=["CPSC 471", "MATH 267"], skills=["Python", "SQL"],
        interests=["hackathons", "research"],
    ), email="alice@ucalgary.ca")
    profiles.upsert_profile("bob", complete_profile_fields(
        "Bob Singh", faculty="Engineering", major="Software Engineering",
        courses=["ENGG 201", "cpsc 471"], skills=["C++"], interests=["startups"],
    ), email="bob@ucalgary.ca")
    profiles.upsert_profile("carol", complete_profile_fields(
        "Carol Li", faculty="Haskayne", major="Finance",
        courses=["ACCT 217"], skills=["Financial Modeling", "Python"],
        interests=["case-competitions"],
    ), email="carol@ucalgary.ca")
    return ["alice", "bob", "carol"]
