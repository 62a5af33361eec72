"""Bearer-token authentication against the external identity provider.

Uses PyJWT with RS256 asymmetric verification.  JWKS keys are fetched
from the OIDC tenant and cached in-memory (300 s) via ``PyJWKClient``.

* Any decode or validation error returns 401.
* ``algorithms`` is pinned to the configured value, never read from the
  incoming token.
* Audience and issuer are always validated.
* Tokens from other issuers fall through to SimpleJWT (local development).
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

import jwt as pyjwt
import structlog
from django.conf import settings
from jwt import PyJWKClient
from jwt.exceptions import PyJWTError
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

logger = structlog.get_logger(__name__)

ROLE_ADMIN = "admin"
ROLE_EMPLOYEE = "employee"
ROLE_CUSTOMER = "customer"

BACK_OFFICE_ROLES = frozenset({ROLE_ADMIN, ROLE_EMPLOYEE})


def _issuer() -> str:
    domain = getattr(settings, "IDENTITY_DOMAIN", "")
    return f"https://{domain}/" if domain else ""


@lru_cache(maxsize=1)
def _jwks_client(domain: str) -> PyJWKClient:
    return PyJWKClient(
        f"https://{domain}/.well-known/jwks.json",
        cache_jwk_set=True,
        lifespan=300,
    )


class IdentityUser:
    """Principal authenticated by the identity provider.

    No local Django ``User`` row is required.  Views read ``sub``,
    ``name``, ``email``, ``phone`` and ``roles``.
    """

    is_authenticated = True
    is_active = True
    is_anonymous = False

    def __init__(self, payload: dict, roles_claim: str = "") -> None:
        self.payload = payload
        self.sub: str = payload.get("sub", "")
        self.name: str = payload.get("name", "")
        self.email: str = payload.get("email", "")
        self.phone: str = payload.get("phone_number", "")
        roles = payload.get(roles_claim) if roles_claim else None
        if roles is None:
            roles = payload.get("roles", [])
        self.roles: list[str] = [str(role).lower() for role in roles]

    @property
    def pk(self) -> str:
        return self.sub

    @property
    def is_staff(self) -> bool:
        return bool(BACK_OFFICE_ROLES.intersection(self.roles))

    @property
    def is_superuser(self) -> bool:
        return ROLE_ADMIN in self.roles

    def has_role(self, *roles: str) -> bool:
        return any(role in self.roles for role in roles)

    def __str__(self) -> str:
        return self.sub


class IdentityProviderAuthentication(BaseAuthentication):
    """DRF authentication class that validates provider-issued Bearer tokens."""

    keyword = "Bearer"

    def authenticate(self, request):
        """Return ``(IdentityUser, token)`` or ``None`` (no credentials)."""
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None

        token = self._extract_token(header)

        issuer = _issuer()
        if not (issuer and getattr(settings, "IDENTITY_AUDIENCE", "")):
            return None
        if self._unverified_issuer(token) != issuer:
            return None

        payload = self._decode_token(token, issuer)
        user = IdentityUser(payload, getattr(settings, "IDENTITY_ROLES_CLAIM", ""))
        logger.info("identity.authenticated", sub=user.sub, roles=user.roles)
        return (user, token)

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'

    @staticmethod
    def _extract_token(header: str) -> str:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise AuthenticationFailed("Invalid Authorization header format.")
        return parts[1]

    @staticmethod
    def _unverified_issuer(token: str) -> Optional[str]:
        try:
            payload = pyjwt.decode(
                token,
                options={
                    "verify_signature": False,
                    "verify_aud": False,
                    "verify_iss": False,
                },
            )
        except PyJWTError:
            return None
        return payload.get("iss")

    @staticmethod
    def _decode_token(token: str, issuer: str) -> dict:
        try:
            signing_key = _jwks_client(settings.IDENTITY_DOMAIN).get_signing_key_from_jwt(
                token
            )
            return pyjwt.decode(
                token,
                signing_key.key,
                algorithms=[settings.IDENTITY_ALGORITHM],
                audience=settings.IDENTITY_AUDIENCE,
                issuer=issuer,
            )
        except PyJWTError as exc:
            logger.warning("identity.token_rejected", error=str(exc))
            raise AuthenticationFailed(f"Token validation failed: {exc}") from exc
