"""Schema/seed helpers used by ``create_app`` and the ``scripts/`` entry points."""
from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

import mysql.connector
from werkzeug.security import generate_password_hash

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[4] / "database"
SCHEMA_PATH = DATABASE_DIR / "schema.sql"
SEED_PATH = DATABASE_DIR / "seed.sql"

DEMO_USERS = (
    # full_name, username, password, role
    ("Admin Demo", "admin", "admin123", "admin"),
    ("Jane Wanjiku", "employee", "employee123", "employee"),
    ("Peter Otieno", "trainer", "trainer123", "trainer"),
)
DEMO_CLASS = ("Python Foundations", "PY-101", 2.0)


@contextmanager
def _connection(db_config: dict, *, with_database: bool = True) -> Iterator:
    params = {
        "host": str(db_config.get("host", "localhost")),
        "port": int(db_config.get("port", 3306)),
        "user": str(db_config.get("user", "root")),
        "password": str(db_config.get("password", "")),
        "connection_timeout": int(db_config.get("connect_timeout", 5)),
        "use_pure": True,
    }
    if with_database:
        params["database"] = str(db_config.get("database", "attendance_db"))
    conn = mysql.connector.connect(**params)
    try:
        yield conn
    finally:
        conn.close()


def _strip_database_statements(sql: str) -> str:
    # schema.sql may name a database; the configured one always wins.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    return re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)


def split_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ``;`` outside quoted strings and ``--`` comments."""

    buf: list[str] = []
    quote = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote:
            buf.append(ch)
            if ch == "\\" and i + 1 < len(sql):
                buf.append(sql[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
            buf.append(ch)
        elif ch == "-" and sql.startswith("--", i):
            end = sql.find("\n", i)
            i = len(sql) if end < 0 else end
            continue
        elif ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
        else:
            buf.append(ch)
        i += 1

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(db_config: dict, path: Path) -> int:
    sql = _strip_database_statements(Path(path).read_text(encoding="utf-8"))
    count = 0
    with _connection(db_config) as conn:
        cur = conn.cursor()
        for stmt in split_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    return count


def ensure_database_exists(db_config: dict) -> None:
    name = str(db_config.get("database", "attendance_db"))
    with _connection(db_config, with_database=False) as conn:
        cur = conn.cursor()
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path = SCHEMA_PATH) -> None:
    ensure_database_exists(db_config)
    count = _run_script(db_config, Path(schema_path))
    logger.info("Applied schema %s (%s statements)", schema_path, count)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path = SEED_PATH) -> None:
    count = _run_script(db_config, Path(seed_path))
    logger.info("Applied seed %s (%s statements)", seed_path, count)


def ensure_demo_users(db_config: dict) -> None:
    """Idempotently create the demo admin/employee/trainer and one assigned class."""

    with _connection(db_config) as conn:
        cur = conn.cursor(dictionary=True)

        ids: dict[str, int] = {}
        for full_name, username, password, role in DEMO_USERS:
            cur.execute(
                """
                INSERT INTO users (full_name, username, password_hash, role, is_active)
                VALUES (%s, %s, %s, %s, 1)
                ON DUPLICATE KEY UPDATE
                    full_name=VALUES(full_name),
                    password_hash=VALUES(password_hash),
                    role=VALUES(role),
                    is_active=1
                """,
                (full_name, username, generate_password_hash(password), role),
            )
            cur.execute("SELECT user_id FROM users WHERE username=%s", (username,))
            ids[username] = int(cur.fetchone()["user_id"])

        name, code, hours = DEMO_CLASS
        cur.execute(
            """
            INSERT INTO classes (name, code, duration_hours, is_active)
            VALUES (%s, %s, %s, 1)
            ON DUPLICATE KEY UPDATE name=VALUES(name), duration_hours=VALUES(duration_hours)
            """,
            (name, code, hours),
        )
        cur.execute("SELECT class_id FROM classes WHERE code=%s", (code,))
        class_id = int(cur.fetchone()["class_id"])

        cur.execute(
            """
            INSERT INTO trainer_class_assignments (trainer_id, class_id, is_active)
            VALUES (%s, %s, 1)
            ON DUPLICATE KEY UPDATE is_active=1
            """,
            (ids["trainer"], class_id),
        )
        conn.commit()
    logger.info("Demo users ready: %s", ", ".join(sorted(ids)))


def list_tables(db_config: dict) -> list[str]:
    with _connection(db_config) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
