import logging
import threading
import time
from typing import Dict

from fastapi import Depends, Header, HTTPException, Request
from jose import JWTError, jwt

from auth.models import CurrentUser
from config import settings
from errors import AuthError
from supabaseclient import get_anon_client, get_client

logger = logging.getLogger(__name__)

# Used when a signed-out token carries no readable exp claim.
DEFAULT_REVOKE_TTL = 60 * 60


def client_factory():
    """Dependency handing routes a ``(access_token=None) -> Client`` callable."""
    return get_client


def auth_client():
    """Dependency handing token checks the shared anon client getter."""
    return get_anon_client


class RevokedTokens:
    """
    Access tokens signed out through this service.

    Local JWT verification cannot see a GoTrue logout, so signed-out tokens
    are remembered here until their own ``exp`` passes.
    """

    def __init__(self, default_ttl: float = DEFAULT_REVOKE_TTL, clock=time.time):
        self.default_ttl = default_ttl
        self.clock = clock
        self._tokens: Dict[str, float] = {}
        self._lock = threading.Lock()

    def add(self, token: str):
        try:
            expires = float(jwt.get_unverified_claims(token)["exp"])
        except (JWTError, KeyError, TypeError, ValueError):
            expires = self.clock() + self.default_ttl
        with self._lock:
            self._tokens[token] = expires

    def _purge(self, now: float):
        for token in [t for t, exp in self._tokens.items() if exp <= now]:
            del self._tokens[token]

    def __contains__(self, token):
        with self._lock:
            self._purge(self.clock())
            return token in self._tokens

    def __len__(self):
        with self._lock:
            self._purge(self.clock())
            return len(self._tokens)


def fetch_claims(token: str, make_client=get_anon_client) -> dict:
    """Ask GoTrue who the token belongs to."""
    try:
        response = make_client().auth.get_user(token)
    except Exception as e:
        raise AuthError(f"Session lookup failed: {e}") from e

    if response is None or response.user is None:
        raise AuthError("No user for this token")
    return {"sub": str(response.user.id), "email": response.user.email or ""}


def verify_token(token: str, make_client=get_anon_client) -> dict:
    """
    Return the claims of a Supabase access token.

    With SUPABASE_JWT_SECRET set the signature, expiry and audience are
    checked locally; otherwise GoTrue is asked.
    """
    if settings.JWT_SECRET:
        try:
            claims = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=[settings.JWT_ALGO],
                audience=settings.JWT_AUDIENCE,
            )
        except JWTError as e:
            raise AuthError(f"Invalid or expired token: {e}") from e
    else:
        claims = fetch_claims(token, make_client)

    if not claims.get("sub"):
        raise AuthError("Token missing sub")
    return claims


def get_current_user(
    request: Request,
    authorization: str = Header(None),
    make_client=Depends(auth_client),
) -> CurrentUser:
    """
    Reads Authorization header in the format: "Bearer <token>"
    """
    if not authorization:
        raise HTTPException(401, "Missing Authorization header")
    if not authorization.startswith("Bearer "):
        raise HTTPException(401, "Invalid token format")

    token = authorization.split(" ", 1)[1].strip()
    if token in request.app.state.revoked_tokens:
        raise HTTPException(401, "Invalid or expired token")

    try:
        claims = verify_token(token, make_client)
    except AuthError as e:
        logger.info("Rejected token: %s", e)
        raise HTTPException(401, "Invalid or expired token")

    return CurrentUser(id=str(claims["sub"]), email=claims.get("email") or "", token=token)
