"""Bearer authentication: identity-provider tokens first, local SimpleJWT second."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from rest_framework_simplejwt.tokens import AccessToken

from modules.core import authentication

pytestmark = pytest.mark.integration

ME_URL = "/api/v1/me"
DOMAIN = "gessielegance.auth.example.com"
AUDIENCE = "https://api.gessielegance.com"
ROLES_CLAIM = "https://gessielegance.com/roles"


class _SigningKey:
    def __init__(self, key):
        self.key = key


class _StubJwks:
    def __init__(self, public_key):
        self.public_key = public_key

    def get_signing_key_from_jwt(self, token):
        return _SigningKey(self.public_key)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture()
def identity_provider(settings, monkeypatch, private_key):
    settings.IDENTITY_DOMAIN = DOMAIN
    settings.IDENTITY_AUDIENCE = AUDIENCE
    settings.IDENTITY_ALGORITHM = "RS256"
    settings.IDENTITY_ROLES_CLAIM = ROLES_CLAIM
    stub = _StubJwks(private_key.public_key())
    monkeypatch.setattr(authentication, "_jwks_client", lambda domain: stub)
    return stub


@pytest.fixture()
def issue_token(private_key):
    def _issue(roles=(), key=None, **claims):
        now = datetime.now(timezone.utc)
        payload = {
            "sub": "auth0|cliente-1",
            "iss": f"https://{DOMAIN}/",
            "aud": AUDIENCE,
            "iat": now,
            "exp": now + timedelta(minutes=5),
            "name": "Cliente Um",
            "email": "cliente@example.com",
            ROLES_CLAIM: list(roles),
        }
        payload.update(claims)
        return jwt.encode(payload, key or private_key, algorithm="RS256")

    return _issue


# ===========================================================================
# Missing or malformed credentials
# ===========================================================================


class TestRejected:
    def test_no_token(self, api_client):
        response = api_client.get(ME_URL)

        assert response.status_code == 401
        assert "Bearer" in response.get("WWW-Authenticate", "")

    def test_garbage_bearer(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer invalid.token.here")
        assert api_client.get(ME_URL).status_code == 401

    @pytest.mark.parametrize("header", ["Token some-token", "Bearer ", "Bearer a b"])
    def test_malformed_header(self, api_client, header):
        api_client.credentials(HTTP_AUTHORIZATION=header)
        assert api_client.get(ME_URL).status_code == 401

    def test_public_endpoints_ignore_missing_credentials(self, api_client):
        assert api_client.get("/health").status_code == 200
        assert api_client.get("/api/v1/products/").status_code == 200


# ===========================================================================
# Identity provider tokens
# ===========================================================================


class TestIdentityProvider:
    def test_customer_token(self, api_client, identity_provider, issue_token):
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(['Customer'])}")

        response = api_client.get(ME_URL)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "auth0|cliente-1"
        assert data["name"] == "Cliente Um"
        assert data["roles"] == ["customer"]
        assert data["is_back_office"] is False

    def test_employee_token_is_back_office(self, api_client, identity_provider, issue_token):
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(['Employee'])}")

        response = api_client.get(ME_URL)

        assert response.json()["is_back_office"] is True

    def test_wrong_audience(self, api_client, identity_provider, issue_token):
        token = issue_token(aud="https://other-api.example.com")
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        assert api_client.get(ME_URL).status_code == 401

    def test_expired_token(self, api_client, identity_provider, issue_token):
        token = issue_token(exp=datetime.now(timezone.utc) - timedelta(minutes=1))
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        assert api_client.get(ME_URL).status_code == 401

    def test_foreign_signature(self, api_client, identity_provider, issue_token):
        stranger = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(key=stranger)}")

        assert api_client.get(ME_URL).status_code == 401


# ===========================================================================
# Local accounts
# ===========================================================================


class TestLocalAccounts:
    def test_simplejwt_token_for_django_user(self, api_client, buyer_user):
        token = AccessToken.for_user(buyer_user)
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        response = api_client.get(ME_URL)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(buyer_user.pk)
        assert data["email"] == "maria@example.com"
        assert data["is_back_office"] is False

    def test_staff_user_is_back_office(self, staff_client):
        assert staff_client.get(ME_URL).json()["is_back_office"] is True
