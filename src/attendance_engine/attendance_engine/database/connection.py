from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict

import mysql.connector

from ..core.exceptions import TransientStoreError


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = 5


class DatabaseConnection:
    """Opens short-lived attendance-store connections.

    Sessions run in UTC so stored DATETIME values stay UTC-naive.
    """

    _instances: ClassVar[Dict[DBConfig, "DatabaseConnection"]] = {}

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        # One factory per distinct config.
        if config not in cls._instances:
            cls._instances[config] = cls(config)
        return cls._instances[config]

    def connect(self):
        cfg = self._config
        try:
            return mysql.connector.connect(
                host=cfg.host,
                port=int(cfg.port),
                user=cfg.user,
                password=cfg.password,
                database=cfg.database,
                connection_timeout=int(cfg.connect_timeout),
                time_zone="+00:00",
            )
        except mysql.connector.Error as e:
            raise TransientStoreError("Could not connect to the attendance database", cause=e) from e
