import pytest
from werkzeug.security import generate_password_hash

from src.attendance_engine.attendance_engine.core.enums import Role
from src.attendance_engine.attendance_engine.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ValidationError,
)
from src.attendance_engine.attendance_engine.users.model import User
from src.attendance_engine.attendance_engine.users.service import AuthService, SessionIdentityProvider
from tests.fakes import InMemoryUsers

HASH = generate_password_hash("secret123", method="pbkdf2:sha256:1000")


@pytest.fixture
def users():
    return InMemoryUsers(
        [
            User(1, "Jane Wanjiku", "jane", HASH, Role.EMPLOYEE),
            User(2, "Gone Away", "gone", HASH, Role.TRAINER, is_active=False),
            User(3, "Placeholder", "placeholder", "CHANGE_ME", Role.EMPLOYEE),
            User(9, "Admin Demo", "admin", HASH, Role.ADMIN),
        ]
    )


def test_authenticate_success(users):
    identity = AuthService(users).authenticate("jane", "secret123")

    assert identity.user_id == 1
    assert identity.role is Role.EMPLOYEE
    assert identity.is_active


@pytest.mark.parametrize(
    "username, password",
    [("jane", "wrong"), ("nobody", "secret123"), ("gone", "secret123"), ("placeholder", "CHANGE_ME"), ("jane", "")],
)
def test_authenticate_failures(users, username, password):
    with pytest.raises(AuthenticationError):
        AuthService(users).authenticate(username, password)


def test_authenticate_requires_username(users):
    with pytest.raises(ValidationError):
        AuthService(users).authenticate("  ", "secret123")


def test_session_identity(users):
    provider = SessionIdentityProvider(users, session_getter=lambda: {"user_id": "1"})
    assert provider.authenticate().user_id == 1

    with pytest.raises(AuthorizationError):
        provider.require_role(Role.ADMIN)
    assert provider.require_role(Role.EMPLOYEE, Role.TRAINER).role is Role.EMPLOYEE


@pytest.mark.parametrize("session", [{}, {"user_id": "abc"}, {"user_id": 2}, {"user_id": 404}])
def test_session_identity_rejects(users, session):
    with pytest.raises(AuthenticationError):
        SessionIdentityProvider(users, session_getter=lambda: session).authenticate()
