from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

DEFAULT_TITLE = "New Chat"

Role = Literal["user", "assistant"]
ROLES = ("user", "assistant")


class ChatSession(BaseModel):
    id: str
    user_id: str
    title: str = DEFAULT_TITLE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Message(BaseModel):
    id: str
    session_id: str
    role: Role   # "user" or "assistant"
    content: str
    created_at: Optional[datetime] = None


class MessageIn(BaseModel):
    message: str = Field(..., description="Text typed by the user")


class ChatView(BaseModel):
    """What the two-pane chat screen shows for one user."""
    state: str
    current_session: Optional[ChatSession] = None
    sessions: List[ChatSession] = []
    messages: List[Message] = []


class ExchangeOut(BaseModel):
    session_id: str
    question: str
    reply: Optional[str] = None
    user_saved: bool
    reply_saved: bool
    touched: bool


class SendOut(BaseModel):
    exchange: ExchangeOut
    view: ChatView
