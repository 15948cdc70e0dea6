from functools import lru_cache
from typing import Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client
from config import settings
from errors import StoreError


def get_client(access_token: Optional[str] = None) -> Client:
    """
    Build a Supabase client.

    Without a token the client talks to the store with the anon key only.
    With a user's access token every PostgREST request carries it, so the
    row-level security policies see that user.
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set in environment")

    headers = {}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"

    # One client per caller: GoTrue keeps the signed-in session on the client.
    options = ClientOptions(
        headers=headers,
        auto_refresh_token=False,
        persist_session=False,
    )
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY, options=options)


@lru_cache(maxsize=1)
def get_anon_client() -> Client:
    """Shared client for token lookups. It never signs in, so it holds no session."""
    return get_client()


def execute(operation: str, query):
    """Run a PostgREST query, turning any rejection into StoreError."""
    try:
        return query.execute()
    except APIError as e:
        raise StoreError(operation, e.message or str(e)) from e
    except httpx.HTTPError as e:
        raise StoreError(operation, f"{type(e).__name__}: {e}") from e
