import logging
from typing import Optional

from auth.models import AuthResult, User
from errors import AuthError, StoreError
from supabaseclient import execute

logger = logging.getLogger(__name__)

USERS_TABLE = "users"


def _to_result(response) -> AuthResult:
    user = getattr(response, "user", None)
    if user is None:
        raise AuthError("Auth service returned no user")

    session = getattr(response, "session", None)
    return AuthResult(
        user_id=str(user.id),
        email=user.email or "",
        access_token=session.access_token if session else None,
        refresh_token=session.refresh_token if session else None,
    )


def sign_up(client, email: str, password: str, full_name: str = "") -> AuthResult:
    try:
        response = client.auth.sign_up({
            "email": email,
            "password": password,
            "options": {"data": {"full_name": full_name}},
        })
    except Exception as e:
        raise AuthError(f"Sign-up failed: {e}") from e
    return _to_result(response)


def sign_in(client, email: str, password: str) -> AuthResult:
    try:
        response = client.auth.sign_in_with_password({
            "email": email,
            "password": password,
        })
    except Exception as e:
        raise AuthError(f"Sign-in failed: {e}") from e

    result = _to_result(response)
    if not result.access_token:
        raise AuthError("Sign-in returned no session")
    return result


def sign_out(client, token: str):
    try:
        client.auth.admin.sign_out(token)
    except Exception as e:
        raise AuthError(f"Sign-out failed: {e}") from e


def ensure_profile(client, user_id: str, email: str, full_name: str = "") -> bool:
    """Create the user's profile row if missing. Best effort."""
    try:
        execute(
            "ensure profile",
            client.table(USERS_TABLE).upsert(
                {"id": user_id, "email": email, "full_name": full_name},
                ignore_duplicates=True,
            ),
        )
    except StoreError as e:
        logger.warning("Could not create profile for %s: %s", user_id, e)
        return False
    return True


def get_profile(client, user_id: str) -> Optional[User]:
    result = execute(
        "get profile",
        client.table(USERS_TABLE).select("*").eq("id", user_id).limit(1),
    )
    if not result.data:
        return None
    return User(**result.data[0])
