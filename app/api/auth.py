from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.errors import error_response
from app.schemas.auth import LoginRequest, LoginResponse
from app.services.auth import AuthenticationError
from app.state import AppState, get_app_state

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, state: AppState = Depends(get_app_state)):
    try:
        return await state.authenticator.authenticate(body.username, body.password)
    except AuthenticationError as exc:
        return error_response(code=exc.code, message=str(exc), status_code=401)
