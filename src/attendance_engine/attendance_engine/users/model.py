from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an account that can record attendance or administer it.

    Trainers are employees too: they check in to work before any class.
    """

    user_id: int
    full_name: str
    username: str
    password_hash: str
    role: Role
    is_active: bool = True

    @property
    def records_attendance(self) -> bool:
        return self.role in (Role.EMPLOYEE, Role.TRAINER)
