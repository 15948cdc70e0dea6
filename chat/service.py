import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from chat.models import ChatSession, ChatView, ExchangeOut, Message
from chat.responder import select_response
from chat.store import MessageStore, SessionStore
from errors import (
    EmptyMessageError,
    NoSessionError,
    ReplyPendingError,
    StoreError,
    UnknownSessionError,
)

logger = logging.getLogger(__name__)

class ChatState(str, Enum):
    NO_SESSION = "no_session"
    IDLE = "idle"
    AWAITING_REPLY = "awaiting_reply"

@dataclass
class Exchange:
    """Outcome of one user turn. A partial exchange is a valid end state."""
    session_id: str
    question: str
    reply: Optional[str] = None
    user_saved: bool = False
    reply_saved: bool = False
    touched: bool = False

    @property
    def complete(self) -> bool:
        return self.user_saved and self.reply_saved

    def to_out(self) -> ExchangeOut:
        return ExchangeOut(
            session_id=self.session_id,
            question=self.question,
            reply=self.reply,
            user_saved=self.user_saved,
            reply_saved=self.reply_saved,
            touched=self.touched,
        )

class ChatOrchestrator:
    """
    Chat screen state for one signed-in user.

    Holds the session list, the selected session and its messages, and runs
    the user actions against the session and message stores. Store failures
    are logged and the action simply does not complete; nothing is retried
    and earlier writes are never rolled back.
    """

    def __init__(self, user_id: str, client, responder: Callable[[str], str] = select_response):
        self.user_id = user_id
        self.responder = responder
        self.sessions: List[ChatSession] = []
        self.current_session: Optional[ChatSession] = None
        self.messages: List[Message] = []
        self._pending = set()
        self._lock = threading.Lock()
        self._state_lock = threading.RLock()
        self._created = set()
        self.bind(client)

    def bind(self, client):
        """Point the stores at a (new) user-scoped client."""
        self.session_store = SessionStore(client)
        self.message_store = MessageStore(client)

    @property
    def state(self) -> ChatState:
        if self.current_session is None:
            return ChatState.NO_SESSION
        if self.is_pending(self.current_session.id):
            return ChatState.AWAITING_REPLY
        return ChatState.IDLE

    def is_pending(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._pending

    def view(self) -> ChatView:
        return ChatView(
            state=self.state.value,
            current_session=self.current_session,
            sessions=list(self.sessions),
            messages=list(self.messages),
        )

    # ----------------------
    # Sessions
    # ----------------------
    def refresh_sessions(self) -> List[ChatSession]:
        """Re-fetch the session list. Keeps the cached list on failure."""
        try:
            fetched = self.session_store.list_sessions(self.user_id)
        except StoreError as e:
            logger.error("Error loading sessions: %s", e)
            return self.sessions

        with self._state_lock:
            fetched_ids = {s.id for s in fetched}
            self._created -= fetched_ids
            # A new_chat may have finished while the fetch was in flight.
            missing = [s for s in self.sessions if s.id in self._created]
            self.sessions = missing + fetched

            if self.current_session is not None:
                fresh = self._find(self.current_session.id)
                if fresh is not None:
                    self.current_session = fresh
            return self.sessions

    def load(self) -> List[ChatSession]:
        sessions = self.refresh_sessions()
        with self._state_lock:
            first = sessions[0] if sessions and self.current_session is None else None
            if first is not None:
                self.current_session = first
        if first is not None:
            self.reload_messages(first.id)
        return self.sessions

    def new_chat(self) -> Optional[ChatSession]:
        try:
            session = self.session_store.create_session(self.user_id)
        except StoreError as e:
            logger.error("Error creating session: %s", e)
            return None

        with self._state_lock:
            self._created.add(session.id)
            self.sessions = [session] + [s for s in self.sessions if s.id != session.id]
            self.current_session = session
            self.messages = []
        logger.info("User %s started chat %s", self.user_id, session.id)
        return session

    def select_session(self, session_id: str) -> ChatSession:
        session = self._find(session_id)
        if session is None:
            # Created elsewhere (another worker, another tab) since the last load.
            self.refresh_sessions()
            session = self._find(session_id)
        if session is None:
            raise UnknownSessionError(session_id)
        self._select(session)
        return session

    def _select(self, session: ChatSession):
        with self._state_lock:
            self.current_session = session
        self.reload_messages(session.id)

    def _find(self, session_id: str) -> Optional[ChatSession]:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    # ----------------------
    # Messages
    # ----------------------
    def reload_messages(self, session_id: Optional[str] = None) -> List[Message]:
        if session_id is None:
            if self.current_session is None:
                return self.messages
            session_id = self.current_session.id

        try:
            messages = self.message_store.list_messages(session_id)
        except StoreError as e:
            logger.error("Error loading messages: %s", e)
            return self.messages

        # The user may have switched sessions while the request was in flight.
        with self._state_lock:
            if self.current_session is not None and self.current_session.id == session_id:
                self.messages = messages
        return messages

    def send(self, text: str) -> Exchange:
        question = (text or "").strip()
        if not question:
            raise EmptyMessageError()

        session = self.current_session
        if session is None:
            raise NoSessionError()

        with self._lock:
            if session.id in self._pending:
                raise ReplyPendingError(session.id)
            self._pending.add(session.id)

        exchange = Exchange(session_id=session.id, question=question)
        try:
            self._run_exchange(exchange)
        finally:
            with self._lock:
                self._pending.discard(session.id)
        return exchange

    def _run_exchange(self, exchange: Exchange):
        session_id = exchange.session_id

        try:
            self.message_store.append_message(session_id, "user", exchange.question)
            exchange.user_saved = True
        except StoreError as e:
            logger.error("Error saving user message: %s", e)
            return

        self.reload_messages(session_id)

        exchange.reply = self.responder(exchange.question)
        try:
            self.message_store.append_message(session_id, "assistant", exchange.reply)
            exchange.reply_saved = True
        except StoreError as e:
            logger.error("Error saving assistant message: %s", e)

        self.reload_messages(session_id)

        exchange.touched = self.session_store.touch_session(session_id)
        if exchange.touched:
            # Most recently updated first, same as the store orders them.
            with self._state_lock:
                session = self._find(session_id)
                if session is not None:
                    self.sessions = [session] + [s for s in self.sessions if s.id != session_id]
