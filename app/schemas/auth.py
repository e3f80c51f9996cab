from __future__ import annotations

from pydantic import BaseModel


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    authenticated: bool
    username: str
