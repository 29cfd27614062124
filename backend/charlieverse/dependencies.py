from __future__ import annotations

from collections.abc import Callable
from http.cookies import CookieError, SimpleCookie
from typing import Annotated

from fastapi import Depends, Path
from starlette.requests import HTTPConnection

from charlieverse.config import Settings
from charlieverse.models.user import Principal
from charlieverse.services.analytics_service import AnalyticsService
from charlieverse.services.auth_service import AuthService
from charlieverse.services.authorization import Action, authorize
from charlieverse.services.contact_service import ContactService
from charlieverse.services.email_service import EmailService
from charlieverse.services.notification_service import NotificationService
from charlieverse.services.project_service import ProjectService
from charlieverse.services.session_service import SessionStore
from charlieverse.services.upload_service import UploadService

# Ids are 32-bit integer primary keys in every relational backend
MAX_RECORD_ID = 2**31 - 1

RecordId = Annotated[int, Path(ge=1, le=MAX_RECORD_ID)]

TOKEN_COOKIE_KEYS = (
    "charlieverse.sid",
    "session_token",
    "sessionToken",
)


def _extract_token_from_request(
    authorization: str | None = None,
    cookie: str | None = None,
    token_param: str | None = None,
    cookie_name: str | None = None,
) -> str | None:
    """Extract the session token from Authorization header, query parameter, or cookie."""

    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]

    if token_param:
        return token_param

    if not cookie:
        return None

    try:
        jar = SimpleCookie()
        jar.load(cookie)
        cookies = {name: morsel.value for name, morsel in jar.items()}
    except CookieError:
        # Malformed cookie header
        return None

    keys = (cookie_name, *TOKEN_COOKIE_KEYS) if cookie_name else TOKEN_COOKIE_KEYS
    for key in keys:
        if key in cookies:
            return cookies[key]

    return None


def get_settings(connection: HTTPConnection) -> Settings:
    return connection.app.state.settings


def get_session_store(connection: HTTPConnection) -> SessionStore:
    return connection.app.state.sessions


def get_session_token(connection: HTTPConnection) -> str | None:
    """Session token carried by an HTTP request or a WebSocket handshake."""
    return _extract_token_from_request(
        authorization=connection.headers.get("authorization"),
        cookie=connection.headers.get("cookie"),
        token_param=connection.query_params.get("token"),
        cookie_name=get_settings(connection).session_cookie_name,
    )


SessionToken = Annotated[str | None, Depends(get_session_token)]


def get_current_principal_optional(
    connection: HTTPConnection,
    token: SessionToken,
) -> Principal | None:
    return get_session_store(connection).get(token)


OptionalPrincipal = Annotated[Principal | None, Depends(get_current_principal_optional)]


def get_current_principal(principal: OptionalPrincipal) -> Principal:
    """Dependency that requires a live session."""
    return authorize(principal, Action.VIEW_OWN_ACCOUNT)


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def require_action(action: Action) -> Callable[..., Principal]:
    """Dependency factory: the session principal must be allowed *action*.

    Only resource-free actions make sense here; per-resource checks happen in
    the services once the resource has been loaded.
    """

    def dependency(principal: OptionalPrincipal) -> Principal:
        return authorize(principal, action)

    return dependency


def get_auth_service(connection: HTTPConnection) -> AuthService:
    return connection.app.state.auth_service


def get_project_service(connection: HTTPConnection) -> ProjectService:
    return connection.app.state.project_service


def get_contact_service(connection: HTTPConnection) -> ContactService:
    return connection.app.state.contact_service


def get_analytics_service(connection: HTTPConnection) -> AnalyticsService:
    return connection.app.state.analytics_service


def get_upload_service(connection: HTTPConnection) -> UploadService:
    return connection.app.state.upload_service


def get_email_service(connection: HTTPConnection) -> EmailService:
    return connection.app.state.email_service


def get_notification_service(connection: HTTPConnection) -> NotificationService:
    return connection.app.state.notification_service


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
ContactServiceDep = Annotated[ContactService, Depends(get_contact_service)]
AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]
UploadServiceDep = Annotated[UploadService, Depends(get_upload_service)]
EmailServiceDep = Annotated[EmailService, Depends(get_email_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
