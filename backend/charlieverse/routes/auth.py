from __future__ import annotations

from fastapi import APIRouter, Response, status

from charlieverse.config import Settings
from charlieverse.dependencies import AuthServiceDep, CurrentPrincipal, SessionToken, SettingsDep
from charlieverse.models.api import (
    AuthResponse,
    FirebaseConfigResponse,
    IdentitySyncRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
)
from charlieverse.models.user import User

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, settings: Settings, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    response: Response,
    service: AuthServiceDep,
    settings: SettingsDep,
) -> AuthResponse:
    user, token = await service.register(payload)
    _set_session_cookie(response, settings, token)
    return AuthResponse(user=user)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    service: AuthServiceDep,
    settings: SettingsDep,
) -> AuthResponse:
    user, token = await service.login(payload)
    _set_session_cookie(response, settings, token)
    return AuthResponse(user=user)


@router.post("/sync-firebase", response_model=AuthResponse)
async def sync_firebase(
    payload: IdentitySyncRequest,
    response: Response,
    service: AuthServiceDep,
    settings: SettingsDep,
) -> AuthResponse:
    """Upsert the local user behind an external identity and start a session."""
    user, token = await service.sync_identity(payload)
    _set_session_cookie(response, settings, token)
    return AuthResponse(user=user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    service: AuthServiceDep,
    settings: SettingsDep,
    token: SessionToken,
) -> MessageResponse:
    service.logout(token)
    response.delete_cookie(settings.session_cookie_name)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=User)
async def me(principal: CurrentPrincipal, service: AuthServiceDep) -> User:
    return await service.current_user(principal)


@router.get("/firebase-config", response_model=FirebaseConfigResponse)
async def firebase_config(settings: SettingsDep) -> FirebaseConfigResponse:
    return FirebaseConfigResponse(
        configured=bool(settings.firebase_api_key and settings.firebase_project_id),
        api_key=settings.firebase_api_key,
        project_id=settings.firebase_project_id,
        app_id=settings.firebase_app_id,
    )
