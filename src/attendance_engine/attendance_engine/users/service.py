from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from werkzeug.security import check_password_hash

from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from .repository import UserRepository


@dataclass(frozen=True)
class Identity:
    """Who is calling: the only identity facts the attendance core trusts."""

    user_id: int
    role: Role
    is_active: bool = True
    full_name: str = ""


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> Identity:
        username = require_non_empty(username, "Username")
        if not password:
            raise AuthenticationError("Invalid username or password")

        user = self._users.get_by_username(username)
        if not user or not user.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid username or password")

        return Identity(user_id=user.user_id, role=user.role, is_active=user.is_active, full_name=user.full_name)


class SessionIdentityProvider:
    """Resolves the caller from the Flask session cookie.

    The session only holds ``user_id``; role and active flag are re-read from
    the user store on every request so deactivation takes effect immediately.
    """

    SESSION_KEY = "user_id"

    def __init__(self, users: UserRepository, session_getter: Optional[Callable[[], Mapping[str, Any]]] = None):
        self._users = users
        self._session_getter = session_getter

    def _session(self) -> Mapping[str, Any]:
        if self._session_getter is not None:
            return self._session_getter()
        from flask import session

        return session

    def authenticate(self) -> Identity:
        raw = self._session().get(self.SESSION_KEY)
        if raw is None:
            raise AuthenticationError("Please log in to continue")
        try:
            user_id = int(raw)
        except (TypeError, ValueError):
            raise AuthenticationError("Please log in to continue")

        user = self._users.get_by_id(user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("Your account is not active")
        return Identity(user_id=user.user_id, role=user.role, is_active=user.is_active, full_name=user.full_name)

    def require_role(self, *roles: Role) -> Identity:
        identity = self.authenticate()
        if identity.role not in roles:
            raise AuthorizationError("You do not have permission to perform this action")
        return identity
