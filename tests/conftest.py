"""Root conftest: shared fixtures for API tests."""

import os

# Configure before anything imports reefing.config
os.environ.setdefault("AUTH_DOMAIN", "reefing-test.auth.local")
os.environ.setdefault("AUTH_AUDIENCE", "https://api.reefing.test")
os.environ.setdefault("SUPABASE_URL", "https://supabase.test.local")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("S3_BUCKET_NAME", "reefing-test")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CREATE_SAMPLE_AQUARIUMS"] = "false"
os.environ["ENVIRONMENT"] = "test"

import time
from typing import Callable, Dict, Iterator, Optional

import pytest
from fastapi.testclient import TestClient
from jose import jwk, jwt

from reefing.config import settings
from reefing.core.auth import TokenVerifier, get_token_verifier
from reefing.database.supabase_client import get_supabase
from reefing.main import app
from reefing.storage.s3_storage import get_storage
from tests.fakes import FakeStorage, FakeSupabase, StaticJWKSClient, generate_rsa_pem

KEY_ID = "test-key-1"


@pytest.fixture(scope="session")
def signing_pem() -> bytes:
    return generate_rsa_pem()


@pytest.fixture(scope="session")
def jwks(signing_pem: bytes) -> dict:
    public = jwk.construct(signing_pem, "RS256").public_key().to_dict()
    public["kid"] = KEY_ID
    public["use"] = "sig"
    return {"keys": [public]}


@pytest.fixture
def make_token(signing_pem: bytes) -> Callable[..., str]:
    def _make_token(
        sub: Optional[str] = "auth0|alice",
        email: Optional[str] = "alice@example.com",
        name: Optional[str] = None,
        expires_in: int = 3600,
        kid: str = KEY_ID,
        pem: Optional[bytes] = None,
        **extra,
    ) -> str:
        now = int(time.time())
        claims = {
            "iss": settings.jwt_issuer,
            "aud": settings.auth_audience,
            "iat": now,
            "exp": now + expires_in,
            **extra,
        }
        if sub is not None:
            claims["sub"] = sub
        if email is not None:
            claims["email"] = email
        if name is not None:
            claims["name"] = name
        return jwt.encode(claims, pem or signing_pem, algorithm="RS256", headers={"kid": kid})

    return _make_token


@pytest.fixture
def auth_headers(make_token) -> Callable[..., Dict[str, str]]:
    def _auth_headers(sub: str = "auth0|alice", email: Optional[str] = None, **kwargs) -> Dict[str, str]:
        if email is None:
            email = f"{sub.split('|')[-1]}@example.com"
        return {"Authorization": f"Bearer {make_token(sub=sub, email=email, **kwargs)}"}

    return _auth_headers


@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def jwks_client(jwks: dict) -> StaticJWKSClient:
    return StaticJWKSClient(jwks)


@pytest.fixture
def verifier(jwks_client: StaticJWKSClient) -> TokenVerifier:
    return TokenVerifier(
        jwks_client,
        audience=settings.auth_audience,
        issuer=settings.jwt_issuer,
        claims_namespace=settings.auth_claims_namespace,
    )


@pytest.fixture
def client(db: FakeSupabase, storage: FakeStorage, verifier: TokenVerifier) -> Iterator[TestClient]:
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_token_verifier] = lambda: verifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def alice(client, auth_headers) -> Dict[str, str]:
    headers = auth_headers("auth0|alice", name="Alice")
    assert client.post("/api/users/sync", headers=headers).status_code == 200
    return headers


@pytest.fixture
def bob(client, auth_headers) -> Dict[str, str]:
    headers = auth_headers("auth0|bob", name="Bob")
    assert client.post("/api/users/sync", headers=headers).status_code == 200
    return headers


@pytest.fixture
def create_aquarium(client) -> Callable[..., dict]:
    def _create_aquarium(headers: Dict[str, str], **overrides) -> dict:
        body = {"name": "Main Display", "type": "reef", "volume": 120, **overrides}
        response = client.post("/api/aquariums", json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create_aquarium


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
