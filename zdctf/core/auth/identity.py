"""Identity collaborator adapter

The submission core never authenticates anyone itself: it receives a
principal id resolved from the bearer token by a verifier. The default
verifier accepts HMAC signed tokens of the form ``<principal_id>.<hex sig>``.
"""

import hashlib
import hmac
import logging
from typing import Protocol

from fastapi import Request

from zdctf.config import settings
from zdctf.ctf.errors import Unauthorized

logger = logging.getLogger(__name__)


class TokenVerifier(Protocol):
    def verify(self, token: str) -> str | None:
        """Return the principal id for a valid token, else None"""


class HmacTokenVerifier:
    """Verifies ``<principal_id>.<hexsig>`` tokens signed with HMAC-SHA256"""

    def __init__(self, signing_key: str | None = None):
        self.signing_key = (signing_key or settings.TOKEN_SIGNING_KEY).encode("utf-8")

    def sign(self, principal_id: str) -> str:
        return hmac.new(
            self.signing_key, principal_id.encode("utf-8"), hashlib.sha256
        ).hexdigest()

    def verify(self, token: str) -> str | None:
        principal_id, sep, signature = token.rpartition(".")
        if not sep or not principal_id or not signature:
            return None
        expected = self.sign(principal_id)
        if not hmac.compare_digest(
            expected.encode("ascii"), signature.lower().encode("ascii", "replace")
        ):
            return None
        return principal_id


_verifier: TokenVerifier | None = None


def get_token_verifier() -> TokenVerifier:
    """Get the active verifier (HMAC by default)"""
    global _verifier  # pylint: disable=global-statement
    if _verifier is None:
        _verifier = HmacTokenVerifier()
    return _verifier


def set_token_verifier(verifier: TokenVerifier | None) -> None:
    """Swap the verifier, e.g. for an external identity provider"""
    global _verifier  # pylint: disable=global-statement
    _verifier = verifier


def issue_token(principal_id: str, signing_key: str | None = None) -> str:
    """Mint a bearer token for a principal (operators and tests)"""
    verifier = HmacTokenVerifier(signing_key)
    return f"{principal_id}.{verifier.sign(principal_id)}"


async def get_principal_id(request: Request) -> str:
    """FastAPI dependency resolving the caller from the Authorization header"""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized()
    principal_id = get_token_verifier().verify(token.strip())
    if not principal_id:
        logger.info("Rejected invalid bearer token from %s", get_client_ip(request))
        raise Unauthorized()
    return principal_id


def get_client_ip(request: Request) -> str | None:
    """Submission origin: first X-Forwarded-For hop, else the peer address"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else None
