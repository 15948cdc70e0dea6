import logging
from datetime import datetime, timezone
from typing import List

from chat.models import DEFAULT_TITLE, ROLES, ChatSession, Message
from errors import StoreError
from supabaseclient import execute

logger = logging.getLogger(__name__)

SESSIONS_TABLE = "chat_sessions"
MESSAGES_TABLE = "messages"


class SessionStore:
    """Reads and writes the signed-in user's rows in ``chat_sessions``."""

    def __init__(self, client):
        self.client = client

    def list_sessions(self, user_id: str) -> List[ChatSession]:
        result = execute(
            "list sessions",
            self.client.table(SESSIONS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("updated_at", desc=True),
        )
        return [ChatSession(**row) for row in result.data or []]

    def create_session(self, user_id: str) -> ChatSession:
        result = execute(
            "create session",
            self.client.table(SESSIONS_TABLE).insert({
                "user_id": user_id,
                "title": DEFAULT_TITLE,
            }),
        )
        if not result.data:
            raise StoreError("create session", "insert returned no row")
        return ChatSession(**result.data[0])

    def touch_session(self, session_id: str) -> bool:
        """Bump ``updated_at``. Best effort: failures are logged, not raised."""
        now = datetime.now(timezone.utc).isoformat()
        try:
            execute(
                "touch session",
                self.client.table(SESSIONS_TABLE)
                .update({"updated_at": now})
                .eq("id", session_id),
            )
        except StoreError as e:
            logger.warning("Could not touch session %s: %s", session_id, e)
            return False
        return True


class MessageStore:
    def __init__(self, client):
        self.client = client

    def list_messages(self, session_id: str) -> List[Message]:
        result = execute(
            "list messages",
            self.client.table(MESSAGES_TABLE)
            .select("*")
            .eq("session_id", session_id)
            .order("created_at"),
        )
        return [Message(**row) for row in result.data or []]

    def append_message(self, session_id: str, role: str, content: str) -> Message:
        if role not in ROLES:
            raise ValueError(f"role must be one of {ROLES}, got {role!r}")

        result = execute(
            f"append {role} message",
            self.client.table(MESSAGES_TABLE).insert({
                "session_id": session_id,
                "role": role,
                "content": content,
            }),
        )
        if not result.data:
            raise StoreError(f"append {role} message", "insert returned no row")
        return Message(**result.data[0])
