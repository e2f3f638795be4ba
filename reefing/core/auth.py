"""
Bearer token verification against the identity provider.

Tokens are RS256 JWTs; signing keys come from the provider's JWKS endpoint.
Keys are cached and refetches are rate limited so a flood of tokens with an
unknown `kid` cannot hammer the provider.
"""

import logging
import re
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Optional

import httpx
from jose import jwt, JWTError, ExpiredSignatureError
from jose.exceptions import JWTClaimsError

from reefing.config import settings
from reefing.core.errors import Unauthenticated

logger = logging.getLogger(__name__)

ALGORITHMS = ["RS256"]


class SigningKeyNotFound(Exception):
    pass


@dataclass(frozen=True)
class Identity:
    subject: str
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def placeholder_email(self) -> str:
        local = re.sub(r"[^A-Za-z0-9._-]", "_", self.subject)
        return f"{local}@auth.placeholder"


class JWKSClient:
    def __init__(
        self,
        jwks_url: str,
        cache_ttl: int = 600,
        requests_per_minute: int = 5,
        timeout: float = 10.0,
    ):
        self.jwks_url = jwks_url
        self.cache_ttl = cache_ttl
        self.requests_per_minute = requests_per_minute
        self.timeout = timeout
        self._keys: Dict[str, Dict[str, Any]] = {}
        self._fetched_at: float = 0.0
        self._fetch_times: Deque[float] = deque()
        self._lock = threading.Lock()

    def _fetch_jwks(self) -> Dict[str, Any]:
        response = httpx.get(self.jwks_url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _can_fetch(self, now: float) -> bool:
        while self._fetch_times and now - self._fetch_times[0] >= 60:
            self._fetch_times.popleft()
        return len(self._fetch_times) < self.requests_per_minute

    def _refresh(self, now: float) -> None:
        if not self._can_fetch(now):
            logger.warning("JWKS fetch rate limit reached, serving cached keys")
            return
        self._fetch_times.append(now)
        try:
            jwks = self._fetch_jwks()
        except Exception as e:
            # Expired keys beat no keys while the provider is unreachable
            logger.warning(f"Failed to fetch JWKS from {self.jwks_url}: {e}")
            return
        self._keys = {k["kid"]: k for k in jwks.get("keys", []) if k.get("kid")}
        self._fetched_at = now
        logger.debug("Fetched %d signing keys from %s", len(self._keys), self.jwks_url)

    def get_signing_key(self, kid: str) -> Dict[str, Any]:
        with self._lock:
            now = time.monotonic()
            expired = (now - self._fetched_at) >= self.cache_ttl
            if expired or kid not in self._keys:
                self._refresh(now)
            key = self._keys.get(kid)
        if key is None:
            raise SigningKeyNotFound(f"No signing key for kid={kid}")
        return key


class TokenVerifier:
    def __init__(self, jwks_client: JWKSClient, audience: str, issuer: str, claims_namespace: str = ""):
        self.jwks_client = jwks_client
        self.audience = audience
        self.issuer = issuer
        self.claims_namespace = claims_namespace

    def _claim(self, claims: Dict[str, Any], name: str) -> Optional[str]:
        value = claims.get(name)
        if not value and self.claims_namespace:
            value = claims.get(f"{self.claims_namespace}{name}")
        return value or None

    def verify(self, token: str) -> Identity:
        """Verify signature, expiry, audience and issuer; return the caller's identity."""
        try:
            header = jwt.get_unverified_header(token)
        except JWTError:
            raise Unauthenticated("Invalid token")

        if header.get("alg") not in ALGORITHMS:
            raise Unauthenticated("Invalid token algorithm")
        kid = header.get("kid")
        if not kid:
            raise Unauthenticated("Invalid token: missing key id")

        try:
            key = self.jwks_client.get_signing_key(kid)
            claims = jwt.decode(
                token,
                key,
                algorithms=ALGORITHMS,
                audience=self.audience,
                issuer=self.issuer,
            )
        except SigningKeyNotFound:
            logger.warning(f"Token signed with unknown key id {kid}")
            raise Unauthenticated("Invalid token")
        except ExpiredSignatureError:
            raise Unauthenticated("Token has expired")
        except (JWTClaimsError, JWTError) as e:
            logger.warning(f"JWT validation failed: {e}")
            raise Unauthenticated("Invalid token")

        subject = claims.get("sub")
        if not subject:
            logger.warning("JWT token missing 'sub' claim")
            raise Unauthenticated("Unauthorized - missing subject")

        return Identity(
            subject=subject,
            email=self._claim(claims, "email"),
            name=self._claim(claims, "name"),
        )


_verifier: Optional[TokenVerifier] = None


def get_token_verifier() -> TokenVerifier:
    global _verifier
    if _verifier is None:
        jwks_client = JWKSClient(
            settings.jwks_url,
            cache_ttl=settings.jwks_cache_ttl_seconds,
            requests_per_minute=settings.jwks_requests_per_minute,
        )
        _verifier = TokenVerifier(
            jwks_client,
            audience=settings.auth_audience,
            issuer=settings.jwt_issuer,
            claims_namespace=settings.auth_claims_namespace,
        )
    return _verifier
