import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from auth.events import AuthEvent
from auth.models import CurrentUser, LoginModel, SignupModel, User
from auth.service import ensure_profile, get_profile, sign_in, sign_out, sign_up
from auth.utils import client_factory, get_current_user
from errors import AuthError, StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/signup")
def signup(data: SignupModel, request: Request, make_client=Depends(client_factory)):
    try:
        result = sign_up(make_client(), data.email, data.password, data.full_name)
    except AuthError as e:
        logger.info("Signup rejected for %s: %s", data.email, e)
        raise HTTPException(400, "Signup failed")

    # No session means the project requires email confirmation first.
    if not result.access_token:
        return {"message": "Check your email to confirm your account", "token": None}

    ensure_profile(make_client(result.access_token), result.user_id, result.email, data.full_name)
    request.app.state.auth_events.emit(AuthEvent.SIGNED_IN, result.user_id)
    return {"message": "Signup successful", "token": result.access_token}


@router.post("/login")
def login(data: LoginModel, request: Request, make_client=Depends(client_factory)):
    try:
        result = sign_in(make_client(), data.email, data.password)
    except AuthError as e:
        logger.info("Login rejected for %s: %s", data.email, e)
        raise HTTPException(400, "Invalid email or password")

    request.app.state.auth_events.emit(AuthEvent.SIGNED_IN, result.user_id)
    return {
        "message": "Login successful",
        "token": result.access_token,
        "refresh_token": result.refresh_token,
        "user": {"id": result.user_id, "email": result.email},
    }


@router.post("/logout")
def logout(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    make_client=Depends(client_factory),
):
    try:
        sign_out(make_client(), user.token)
    except AuthError as e:
        logger.warning("Sign-out for %s failed: %s", user.id, e)

    request.app.state.revoked_tokens.add(user.token)
    request.app.state.auth_events.emit(AuthEvent.SIGNED_OUT, user.id)
    return {"message": "Signed out"}


@router.get("/me", response_model=User)
def me(user: CurrentUser = Depends(get_current_user), make_client=Depends(client_factory)):
    try:
        profile = get_profile(make_client(user.token), user.id)
    except StoreError as e:
        logger.error("Error loading profile: %s", e)
        profile = None
    return profile or User(id=user.id, email=user.email)
