"""
Authentication Boundary

Supplies the signed-in identity that scopes every read and write. The rest
of the system only ever sees an Identity (user id + email) and treats the
user id as an opaque key.

Two implementations:
- DemoAuthenticator: offline/demo mode, always signed in as the demo user.
- StoreAuthenticator: email/password users kept as documents in the same
  document store as the finance data, passwords hashed with PBKDF2.
"""

import hashlib
import hmac
import re
import secrets
from abc import ABC, abstractmethod
from typing import Callable, Optional

from zenfinance.activity import ActivityLogger
from zenfinance.models.activity import ActivityEventType
from zenfinance.models.finance import Identity, utc_now
from zenfinance.services.storage import DocumentStoreInterface, EntityKind


IdentityListener = Callable[[Optional[Identity]], None]

MIN_PASSWORD_LENGTH = 6
PBKDF2_ITERATIONS = 200_000
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthenticationError(Exception):
    """Sign-in or sign-up refused."""
    pass


class AccountExistsError(AuthenticationError):
    """A user with this email already exists."""
    pass


class AuthenticatorInterface(ABC):
    """
    Abstract authentication collaborator.

    Session changes are announced to listeners registered with
    on_identity_change, mirroring a persistent auth-state notification.
    """

    def __init__(self, activity_logger: Optional[ActivityLogger] = None):
        self._identity: Optional[Identity] = None
        self._listeners: list[IdentityListener] = []
        self._activity_logger = activity_logger

    @property
    def current_identity(self) -> Optional[Identity]:
        return self._identity

    def on_identity_change(self, listener: IdentityListener) -> Callable[[], None]:
        """
        Register a listener; it is called immediately with the current identity.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)
        listener(self._identity)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_identity(
        self,
        identity: Optional[Identity],
        event_type: ActivityEventType,
    ) -> None:
        previous = self._identity
        self._identity = identity
        if self._activity_logger:
            subject = identity or previous
            self._activity_logger.log_session_changed(
                event_type=event_type,
                user_id=subject.user_id if subject else None,
                email=subject.email if subject else None,
            )
        for listener in list(self._listeners):
            listener(identity)

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Identity:
        pass

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> Identity:
        pass

    async def sign_out(self) -> None:
        self._set_identity(None, ActivityEventType.USER_SIGNED_OUT)


class DemoAuthenticator(AuthenticatorInterface):
    """Offline/demo mode: the demo user is always signed in."""

    def __init__(
        self,
        user_id: str = "demo",
        email: str = "demo@example.com",
        activity_logger: Optional[ActivityLogger] = None,
    ):
        super().__init__(activity_logger)
        self._demo = Identity(user_id=user_id, email=email)
        self._identity = self._demo

    async def sign_in(self, email: str, password: str) -> Identity:
        self._set_identity(self._demo, ActivityEventType.USER_SIGNED_IN)
        return self._demo

    async def sign_up(self, email: str, password: str) -> Identity:
        return await self.sign_in(email, password)

    async def sign_out(self) -> None:
        # There is nobody else to be; stay signed in as the demo user
        self._set_identity(self._demo, ActivityEventType.USER_SIGNED_OUT)


def hash_password(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        bytes.fromhex(salt),
        PBKDF2_ITERATIONS,
    )
    return digest.hex()


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class StoreAuthenticator(AuthenticatorInterface):
    """Email/password users persisted in the document store."""

    def __init__(
        self,
        store: DocumentStoreInterface,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        super().__init__(activity_logger)
        self._store = store

    async def _find_user(self, email: str) -> Optional[dict]:
        users = await self._store.list_documents(EntityKind.USERS, filters={"email": email})
        return users[0] if users else None

    async def sign_up(self, email: str, password: str) -> Identity:
        email = _normalize_email(email)
        if not EMAIL_PATTERN.match(email):
            raise AuthenticationError("Please enter a valid email address")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthenticationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if await self._find_user(email) is not None:
            raise AccountExistsError("An account with this email already exists")

        salt = secrets.token_hex(16)
        document = await self._store.create_document(EntityKind.USERS, {
            "email": email,
            "password_hash": hash_password(password, salt),
            "salt": salt,
            "created_at": utc_now().isoformat(),
        })
        identity = Identity(user_id=document["id"], email=email)
        self._set_identity(identity, ActivityEventType.USER_SIGNED_UP)
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        email = _normalize_email(email)
        user = await self._find_user(email)
        if user is None or not user.get("salt"):
            raise AuthenticationError("Incorrect email or password")

        expected = user.get("password_hash", "")
        if not hmac.compare_digest(hash_password(password or "", user["salt"]), expected):
            raise AuthenticationError("Incorrect email or password")

        identity = Identity(user_id=user["id"], email=email)
        self._set_identity(identity, ActivityEventType.USER_SIGNED_IN)
        return identity
