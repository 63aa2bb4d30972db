"""Supported engines: adapter class, pip extra and accepted connection params.

Adapter modules import their driver at the top, so an adapter module is
imported only when a connection of its type is opened.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass

from sqlwarden.adapters._base import AdapterError, DatabaseAdapter, DatabaseType


@dataclass(frozen=True)
class Engine:
    db_type: DatabaseType
    adapter_path: str               # "module:ClassName"
    required: frozenset[str] = frozenset()
    optional: frozenset[str] = frozenset()
    integers: frozenset[str] = frozenset()

    @property
    def accepted(self) -> frozenset[str]:
        return self.required | self.optional

    @property
    def install_hint(self) -> str:
        return f"pip install 'sqlwarden[{self.db_type.value}]'"

    def load_adapter(self) -> type[DatabaseAdapter]:
        module_name, class_name = self.adapter_path.split(":")
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise AdapterError(
                f"Missing driver for {self.db_type.value}. Install with: {self.install_hint}"
            ) from e
        return getattr(module, class_name)


ENGINES: dict[DatabaseType, Engine] = {
    DatabaseType.MYSQL: Engine(
        DatabaseType.MYSQL,
        "sqlwarden.adapters.mysql:MySQLAdapter",
        required=frozenset({"host", "user"}),
        optional=frozenset({"port", "password", "database", "pool_size", "connect_timeout"}),
        integers=frozenset({"port", "pool_size", "connect_timeout"}),
    ),
    DatabaseType.POSTGRES: Engine(
        DatabaseType.POSTGRES,
        "sqlwarden.adapters.postgres:PostgresAdapter",
        required=frozenset({"dsn"}),
    ),
    DatabaseType.DUCKDB: Engine(
        DatabaseType.DUCKDB,
        "sqlwarden.adapters.duckdb:DuckDBAdapter",
        optional=frozenset({"path"}),
    ),
}


def get_adapter(db_type: DatabaseType) -> type[DatabaseAdapter]:
    """Adapter class for ``db_type``; AdapterError names the extra to install."""
    return ENGINES[db_type].load_adapter()
