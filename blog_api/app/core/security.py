"""
Security helpers for password hashing, session tokens and ownership.

Session tokens are compact JSON Web Tokens signed with HMAC‑SHA256
and base64url encoded.  They carry ``{username, user_id}`` and no
expiration claim: a session lasts as long as the cookie holding it,
and validity is purely signature plus successful decoding.  There is
no server-side session table and no revocation list.

Passwords are hashed with PBKDF2‑HMAC‑SHA256.  The salt is supplied
by the caller (one per deployment) and stored next to the hash as
``salthex$hashhex`` so that verification never depends on the
current configuration.

``require_author`` is the ownership check gating post updates and
deletions; ``get_current_user`` is the FastAPI dependency that turns
the session cookie into a verified ``TokenPayload``.
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import InvalidToken, NotAuthor
from ..schemas.user import TokenPayload

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 100_000
_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _json_segment(data: Dict[str, Any]) -> str:
    return _b64_url_encode(json.dumps(data, separators=(",", ":")).encode("utf-8"))


class TokenService:
    """Issue and verify signed session tokens.

    The signing secret is passed in at construction; the service keeps
    no other state.
    """

    def __init__(self, secret_key: str):
        if not secret_key:
            raise ValueError("A non-empty secret key is required to sign tokens")
        self._secret = secret_key.encode("utf-8")

    def _sign(self, message: bytes) -> bytes:
        return hmac.new(self._secret, message, hashlib.sha256).digest()

    def issue(self, payload: TokenPayload) -> str:
        """Return a signed token (``header.payload.signature``) for ``payload``."""
        header_b64 = _json_segment(_HEADER)
        payload_b64 = _json_segment(payload.model_dump())
        signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
        signature_b64 = _b64_url_encode(self._sign(signing_input))
        return f"{header_b64}.{payload_b64}.{signature_b64}"

    def verify(self, token: Optional[str]) -> TokenPayload:
        """Verify ``token`` and return its payload.

        Raises
        ------
        InvalidToken
            If the token is missing, not three segments, signed with a
            different secret, or its payload cannot be decoded.
        """
        if not token:
            raise InvalidToken()
        parts = token.split(".")
        if len(parts) != 3:
            raise InvalidToken()
        header_b64, payload_b64, signature_b64 = parts
        signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
        try:
            actual_sig = _b64_url_decode(signature_b64)
        except (binascii.Error, ValueError):
            raise InvalidToken()
        # Constant‑time comparison to prevent timing attacks
        if not hmac.compare_digest(self._sign(signing_input), actual_sig):
            logger.debug("Rejected session token with a bad signature")
            raise InvalidToken()
        try:
            header = json.loads(_b64_url_decode(header_b64).decode("utf-8"))
            data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
            if header.get("alg") != _HEADER["alg"]:
                raise InvalidToken()
            return TokenPayload(username=data["username"], user_id=data["user_id"])
        except InvalidToken:
            raise
        except Exception:
            logger.debug("Rejected session token with an undecodable payload")
            raise InvalidToken()


def hash_password(password: str, salt: bytes) -> str:
    """Hash a password using PBKDF2‑HMAC with SHA‑256.

    Returns the salt and hash in hex, separated by ``$``.
    """
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored ``salthex$hashhex`` string.

    Recomputes the PBKDF2 digest with the stored salt and compares it
    in constant time.  A malformed stored value never matches.
    """
    try:
        salt_hex, hash_hex = hashed_password.split("$", 1)
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except (AttributeError, ValueError):
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)


def require_author(post, caller_id: Any) -> None:
    """Allow the call only if ``caller_id`` wrote ``post``.

    Both identifiers are compared in their canonical string form, so
    an integer primary key and the same id decoded from a token as a
    string are equal.

    Raises
    ------
    NotAuthor
        If the caller is not the post's author.
    """
    if caller_id is None or str(post.author.id) != str(caller_id):
        logger.warning("User %s refused write access to post %s", caller_id, post.id)
        raise NotAuthor()


security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> TokenPayload:
    """Dependency that retrieves the caller's verified session.

    The token is read from the session cookie.  Clients that cannot
    hold cookies (scripts, ``create_token.py``) may send it as
    ``Authorization: Bearer <token>`` instead.  A missing or invalid
    token raises ``InvalidToken``, which the error handlers report as
    a 401 response.
    """
    state = request.app.state
    token = request.cookies.get(state.settings.cookie_name)
    if not token and credentials is not None:
        token = credentials.credentials
    return state.token_service.verify(token)
