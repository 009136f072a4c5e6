"""
Pytest configuration and fixtures.

Every test gets its own SQLite database and talks to the real FastAPI app
through httpx. Tokens are real RS256 JWTs signed with a throwaway key that
the app's TokenVerifier is configured to trust.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("FIREBASE_PROJECT_ID", "tanavent-test")

import time
from types import SimpleNamespace

import jwt
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from core.auth import TokenVerifier, get_token_verifier
from db.database import create_db_and_tables, enable_sqlite_foreign_keys, get_async_session
from main import app

PROJECT_ID = "tanavent-test"
ISSUER = f"https://securetoken.google.com/{PROJECT_ID}"


@pytest.fixture(scope="session")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def make_token(signing_key):
    """Build a Firebase-style ID token. Pass claim=None to drop a claim."""
    def _make(uid, email=None, key=None, **overrides):
        now = int(time.time())
        claims = {
            "sub": uid,
            "email": email or f"{uid}@example.com",
            "aud": PROJECT_ID,
            "iss": ISSUER,
            "iat": now,
            "exp": now + 3600,
        }
        claims.update(overrides)
        claims = {k: v for k, v in claims.items() if v is not None}
        return jwt.encode(claims, key or signing_key, algorithm="RS256", headers={"kid": "test-key"})
    return _make


@pytest.fixture
def auth(make_token):
    """Return request headers carrying a valid bearer token for uid."""
    def _auth(uid, email=None):
        return {"Authorization": f"Bearer {make_token(uid, email)}"}
    return _auth


@pytest.fixture
def verifier(signing_key):
    return TokenVerifier(PROJECT_ID, key_resolver=lambda token: signing_key.public_key())


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    enable_sqlite_foreign_keys(engine)
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def client(session_maker, verifier):
    async def _get_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = _get_session
    app.dependency_overrides[get_token_verifier] = lambda: verifier
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def _tenant(client, headers, org_name, section_name):
    res = await client.post("/api/organizations", json={"name": org_name}, headers=headers)
    assert res.status_code == 201, res.text
    org_id = res.json()["id"]

    res = await client.post(f"/api/organizations/{org_id}/sections", json={"name": section_name}, headers=headers)
    assert res.status_code == 201, res.text
    return SimpleNamespace(headers=headers, org_id=org_id, section_id=res.json()["id"])


@pytest_asyncio.fixture
async def owner(client, auth):
    """User U, owner of organization O with one section S."""
    return await _tenant(client, auth("user-u", "u@example.com"), "Bistro U", "Wine Cellar")


@pytest_asyncio.fixture
async def outsider(client, auth):
    """User V, no membership in U's organization, owner of an organization of their own."""
    return await _tenant(client, auth("user-v", "v@example.com"), "Bar V", "Back Bar")


@pytest_asyncio.fixture
async def margaux(client, owner):
    res = await client.post(
        "/api/inventory",
        json={
            "name": "Margaux",
            "vintage": 2015,
            "quantity": 3,
            "unit": "btl",
            "organizationId": owner.org_id,
            "sectionId": owner.section_id,
        },
        headers=owner.headers,
    )
    assert res.status_code == 200, res.text
    return res.json()
