import logging
import threading
import time
from typing import Callable, Dict

from auth.events import AuthEvent
from chat.responder import select_response
from chat.service import ChatOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TTL = 30 * 60


class _Entry:
    def __init__(self, chat: ChatOrchestrator, token: str, now: float):
        self.chat = chat
        self.token = token
        self.last_seen = now


class ChatRegistry:
    """
    Per-user chat state kept in this process.

    A user's state is dropped on sign-out, or once it has not been used for
    ``idle_ttl`` seconds. A new orchestrator loads the user's sessions right
    away, so the first request after a restart sees the same state as the
    last one before it.
    """

    def __init__(
        self,
        responder: Callable[[str], str] = select_response,
        idle_ttl: float = DEFAULT_IDLE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.responder = responder
        self.idle_ttl = idle_ttl
        self.clock = clock
        self._chats: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def for_user(self, user_id: str, token: str, make_client) -> ChatOrchestrator:
        """
        Return the user's orchestrator.

        ``make_client(token)`` is only called when the orchestrator is new or
        the caller's token changed, so steady traffic reuses one client.
        """
        created = False
        with self._lock:
            now = self.clock()
            self._evict_idle(now)
            entry = self._chats.get(user_id)
            if entry is None:
                chat = ChatOrchestrator(user_id, make_client(token), responder=self.responder)
                entry = self._chats[user_id] = _Entry(chat, token, now)
                created = True
            else:
                if entry.token != token:
                    entry.chat.bind(make_client(token))
                    entry.token = token
                entry.last_seen = now

        if created:
            entry.chat.load()
        return entry.chat

    def _evict_idle(self, now: float):
        stale = [uid for uid, e in self._chats.items() if now - e.last_seen > self.idle_ttl]
        for uid in stale:
            del self._chats[uid]
        if stale:
            logger.info("Evicted idle chat state for %d user(s)", len(stale))

    def discard(self, user_id: str):
        with self._lock:
            dropped = self._chats.pop(user_id, None)
        if dropped is not None:
            logger.info("Dropped chat state for user %s", user_id)

    def on_auth_event(self, event: AuthEvent, user_id: str):
        if event is AuthEvent.SIGNED_OUT:
            self.discard(user_id)

    def __contains__(self, user_id):
        with self._lock:
            return user_id in self._chats

    def __len__(self):
        with self._lock:
            return len(self._chats)
