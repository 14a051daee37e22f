from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Services depend on this protocol, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def list_active_employees(self) -> Sequence[User]:
        """Active employees and trainers, ordered by id."""

        raise NotImplementedError

    def list_active_employee_ids(self) -> Sequence[int]:
        raise NotImplementedError
