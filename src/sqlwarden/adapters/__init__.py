"""Database adapters — implementations of the DatabaseAdapter protocol."""

from sqlwarden.adapters._base import (
    AdapterError,
    ConnectionConfig,
    DatabaseAdapter,
    DatabaseType,
    NativeResult,
    QueryTimeout,
)
from sqlwarden.adapters._engines import ENGINES, Engine, get_adapter

__all__ = [
    "AdapterError",
    "ConnectionConfig",
    "DatabaseAdapter",
    "DatabaseType",
    "ENGINES",
    "Engine",
    "NativeResult",
    "QueryTimeout",
    "get_adapter",
]
