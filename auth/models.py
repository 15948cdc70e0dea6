from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class SignupModel(BaseModel):
    email: str
    password: str
    full_name: str = ""


class LoginModel(BaseModel):
    email: str
    password: str


class User(BaseModel):
    id: str
    email: str
    full_name: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CurrentUser(BaseModel):
    """The caller, as identified by the bearer token on the request."""
    id: str
    email: str = ""
    token: str


class AuthResult(BaseModel):
    user_id: str
    email: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
