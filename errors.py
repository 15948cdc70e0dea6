class AppError(Exception):
    """Base class for errors raised by the chat service."""


class AuthError(AppError):
    """Session retrieval, token verification, sign-in or sign-out failed."""


class StoreError(AppError):
    """A create/read/update against the hosted store was rejected."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"{operation}: {message}")


class ChatStateError(AppError):
    """The requested chat action is not valid in the current state."""


class NoSessionError(ChatStateError):
    def __init__(self):
        super().__init__("No chat session selected")


class ReplyPendingError(ChatStateError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} is already awaiting a reply")


class EmptyMessageError(ChatStateError, ValueError):
    def __init__(self):
        super().__init__("Message must not be blank")


class UnknownSessionError(ChatStateError, LookupError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Chat session {session_id} not found")
