from fastapi import APIRouter, Depends, HTTPException, Request

from auth.models import CurrentUser
from auth.utils import client_factory, get_current_user
from chat.models import ChatView, MessageIn, SendOut
from chat.responder import select_response
from chat.service import ChatOrchestrator
from errors import ChatStateError, EmptyMessageError, UnknownSessionError

router = APIRouter(prefix="/chat", tags=["Chat"])


def get_chat(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    make_client=Depends(client_factory),
) -> ChatOrchestrator:
    return request.app.state.chats.for_user(user.id, user.token, make_client)


@router.get("/sessions", response_model=ChatView)
def sessions(chat: ChatOrchestrator = Depends(get_chat)):
    chat.load()
    return chat.view()


@router.post("/new", response_model=ChatView, status_code=201)
def new_chat(chat: ChatOrchestrator = Depends(get_chat)):
    chat.new_chat()
    return chat.view()


@router.post("/history/{session_id}", response_model=ChatView)
def select_session(session_id: str, chat: ChatOrchestrator = Depends(get_chat)):
    try:
        chat.select_session(session_id)
    except UnknownSessionError as e:
        raise HTTPException(404, str(e))
    return chat.view()


@router.get("/history", response_model=ChatView)
def history(chat: ChatOrchestrator = Depends(get_chat)):
    chat.reload_messages()
    return chat.view()


@router.get("/state", response_model=ChatView)
def state(chat: ChatOrchestrator = Depends(get_chat)):
    return chat.view()


@router.post("/message", response_model=SendOut)
def send_message(data: MessageIn, chat: ChatOrchestrator = Depends(get_chat)):
    try:
        exchange = chat.send(data.message)
    except EmptyMessageError as e:
        raise HTTPException(400, str(e))
    except ChatStateError as e:
        raise HTTPException(409, str(e))
    return SendOut(exchange=exchange.to_out(), view=chat.view())


@router.post("/reply")
def reply(data: MessageIn, user: CurrentUser = Depends(get_current_user)):
    """Canned reply for a message, nothing stored."""
    if not data.message.strip():
        raise HTTPException(400, "message required")
    return {"answer": select_response(data.message)}
