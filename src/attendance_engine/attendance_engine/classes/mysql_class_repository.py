from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ClassInfo
from .repository import AssignmentRepository, ClassRepository


def _to_class(r: dict) -> ClassInfo:
    return ClassInfo(
        class_id=int(r["class_id"]),
        name=r["name"],
        code=r.get("code"),
        duration_hours=float(r.get("duration_hours") or 0),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLClassRepository(ClassRepository, AssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, class_id: int) -> Optional[ClassInfo]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT class_id, name, code, duration_hours, is_active
                FROM classes
                WHERE class_id=%s
                """,
                (int(class_id),),
            )
            r = fetchone(cur)
            return _to_class(r) if r else None

    def is_assigned(self, trainer_id: int, class_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS ok
                FROM trainer_class_assignments
                WHERE trainer_id=%s AND class_id=%s AND is_active=1
                LIMIT 1
                """,
                (int(trainer_id), int(class_id)),
            )
            return fetchone(cur) is not None

    def list_assigned_classes(self, trainer_id: int) -> Sequence[ClassInfo]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.class_id, c.name, c.code, c.duration_hours, c.is_active
                FROM trainer_class_assignments a
                JOIN classes c ON c.class_id = a.class_id
                WHERE a.trainer_id=%s AND a.is_active=1 AND c.is_active=1
                ORDER BY c.name ASC
                """,
                (int(trainer_id),),
            )
            return [_to_class(r) for r in fetchall(cur)]
