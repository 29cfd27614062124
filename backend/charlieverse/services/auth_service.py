from __future__ import annotations

import asyncio
import logging

import bcrypt

from charlieverse.models.api import (
    IdentitySyncRequest,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
)
from charlieverse.models.events import UserRegistered
from charlieverse.models.user import Principal, User, UserCreate, UserRole, UserUpdate
from charlieverse.repositories.base import Storage
from charlieverse.services.authorization import Action, authorize
from charlieverse.services.event_bus import EventBus
from charlieverse.services.identity_service import FirebaseIdentityVerifier, IdentityAssertion
from charlieverse.services.session_service import SessionStore
from charlieverse.tools.exceptions import (
    DuplicateUser,
    Forbidden,
    InvalidCredentials,
    NotFound,
    ValidationFailure,
)

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def split_display_name(display_name: str | None) -> tuple[str, str]:
    parts = (display_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


class AuthService:
    """Maps credentials to users and keeps the session store in step."""

    def __init__(
        self,
        storage: Storage,
        sessions: SessionStore,
        identity_verifier: FirebaseIdentityVerifier,
        event_bus: EventBus,
        admin_email: str,
    ):
        self.storage = storage
        self.sessions = sessions
        self.identity_verifier = identity_verifier
        self.event_bus = event_bus
        self.admin_email = normalize_email(admin_email)

    async def _initial_role(self, email: str) -> UserRole:
        """The designated admin address and the very first account are admins."""
        if email == self.admin_email:
            return UserRole.ADMIN
        if await self.storage.count_users() == 0:
            return UserRole.ADMIN
        return UserRole.USER

    def _start_session(self, user: User) -> tuple[User, str]:
        return user, self.sessions.create(Principal.from_user(user))

    async def _provision(self, data: UserCreate) -> User:
        user = await self.storage.create_user(data)
        logger.info("New user %s registered with role %s", user.email, user.role.value)
        await self.event_bus.publish(
            UserRegistered(
                user_id=user.id,
                email=user.email,
                first_name=user.first_name,
                last_name=user.last_name,
                role=user.role.value,
            )
        )
        return user

    async def register(self, payload: RegisterRequest) -> tuple[User, str]:
        email = normalize_email(payload.email)
        if "@" not in email:
            raise ValidationFailure("Invalid email address")
        if await self.storage.get_user_by_email(email) is not None:
            logger.warning("Registration attempt with existing email: %s", email)
            raise DuplicateUser()

        password_hash = ""
        if payload.password:
            password_hash = await asyncio.to_thread(hash_password, payload.password)

        user = await self._provision(
            UserCreate(
                email=email,
                password_hash=password_hash,
                first_name=payload.first_name,
                last_name=payload.last_name,
                phone=payload.phone,
                company=payload.company,
                bio=payload.bio,
                firebase_uid=payload.firebase_uid,
                role=await self._initial_role(email),
            )
        )
        return self._start_session(user)

    async def login(self, payload: LoginRequest) -> tuple[User, str]:
        if payload.password is not None and not payload.firebase_uid and not payload.id_token:
            return await self.login_with_password(payload.email, payload.password)
        assertion = await self.identity_verifier.resolve(
            uid=payload.firebase_uid,
            email=payload.email,
            display_name=payload.display_name,
            id_token=payload.id_token,
        )
        user = await self._user_for_assertion(assertion)
        return self._start_session(self._ensure_active(user))

    async def login_with_password(self, email: str | None, password: str) -> tuple[User, str]:
        email = normalize_email(email)
        if not email or not password:
            raise ValidationFailure("Email and password required")

        user = await self.storage.get_user_by_email(email)
        matches = user is not None and await asyncio.to_thread(
            verify_password, password, user.password_hash
        )
        if not matches:
            logger.warning("Failed login attempt for %s", email)
            raise InvalidCredentials()
        logger.info("User %s logged in", email)
        return self._start_session(self._ensure_active(user))

    async def sync_identity(self, payload: IdentitySyncRequest) -> tuple[User, str]:
        assertion = await self.identity_verifier.resolve(
            uid=payload.firebase_uid,
            email=payload.email,
            display_name=payload.display_name,
            id_token=payload.id_token,
        )
        user = await self._user_for_assertion(assertion, profile=payload)

        updates = UserUpdate()
        if user.email == self.admin_email and user.role != UserRole.ADMIN:
            updates.role = UserRole.ADMIN
        if assertion.uid and not user.firebase_uid:
            updates.firebase_uid = assertion.uid
        if updates.model_fields_set:
            user = await self.storage.update_user(user.id, updates) or user

        return self._start_session(self._ensure_active(user))

    async def _user_for_assertion(
        self,
        assertion: IdentityAssertion,
        profile: IdentitySyncRequest | None = None,
    ) -> User:
        """Look up the local user for *assertion*, creating one on first sight."""
        email = normalize_email(assertion.email)
        user = await self.storage.get_user_by_email(email)
        if user is not None:
            return user

        first_name, last_name = split_display_name(assertion.display_name)
        return await self._provision(
            UserCreate(
                email=email,
                first_name=(profile.first_name if profile else None) or first_name or "User",
                last_name=(profile.last_name if profile else None) or last_name,
                phone=profile.phone if profile else None,
                company=profile.company if profile else None,
                bio=profile.bio if profile else None,
                firebase_uid=assertion.uid,
                role=await self._initial_role(email),
            )
        )

    @staticmethod
    def _ensure_active(user: User) -> User:
        if not user.is_active:
            raise Forbidden("Account is deactivated")
        return user

    def logout(self, token: str | None) -> None:
        self.sessions.destroy(token)

    async def current_user(self, principal: Principal) -> User:
        user = await self.storage.get_user(principal.user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def update_profile(self, principal: Principal, payload: ProfileUpdateRequest) -> User:
        updates = UserUpdate(**payload.model_dump(exclude_unset=True))
        user = await self.storage.update_user(principal.user_id, updates)
        if user is None:
            raise NotFound("User not found")
        self.sessions.refresh_user(Principal.from_user(user))
        return user

    async def list_users(self, principal: Principal) -> list[User]:
        authorize(principal, Action.MANAGE_USERS)
        return await self.storage.list_users()

    async def set_active(self, principal: Principal, user_id: int, is_active: bool) -> User:
        authorize(principal, Action.MANAGE_USERS)
        user = await self.storage.update_user(user_id, UserUpdate(is_active=is_active))
        if user is None:
            raise NotFound("User not found")
        logger.info("User %s marked %s", user.email, "active" if is_active else "inactive")
        return user

    async def seed_admin(self, password: str | None = None) -> User | None:
        """Create the designated admin account if it does not exist yet."""
        if await self.storage.get_user_by_email(self.admin_email) is not None:
            logger.info("Admin user already exists")
            return None
        password_hash = await asyncio.to_thread(hash_password, password) if password else ""
        try:
            user = await self._provision(
                UserCreate(
                    email=self.admin_email,
                    password_hash=password_hash,
                    first_name="Admin",
                    last_name="User",
                    company="Charlieverse",
                    bio="System Administrator",
                    role=UserRole.ADMIN,
                )
            )
        except DuplicateUser:
            return None
        logger.info("Default admin user created: %s", user.email)
        return user
