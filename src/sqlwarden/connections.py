"""Connection settings: validation, the --db syntax, and ~/.sqlwarden/connections.toml.

A ``--db`` value is either the name of a saved connection or an inline
``type:key=val,key=val`` string. Both go through the same parameter check,
so a typo in a key fails before any driver is loaded.
"""

from __future__ import annotations

import json
import os
import re
import tomllib
from collections.abc import Iterable, Mapping
from pathlib import Path

from sqlwarden.adapters._base import SECRET_PARAMS, ConnectionConfig, DatabaseType
from sqlwarden.adapters._engines import ENGINES

_CONNECTIONS_FILE = Path.home() / ".sqlwarden" / "connections.toml"

_URL_PASSWORD = re.compile(r"(://[^:/@\s]+:)[^@\s]+(@)")


class InvalidConnection(ValueError):
    """A connection type or parameter set that no adapter accepts."""


def parse_db_type(value: str) -> DatabaseType:
    try:
        return DatabaseType(value)
    except ValueError:
        valid = ", ".join(t.value for t in DatabaseType)
        raise InvalidConnection(f"Unknown database type '{value}'. Valid: {valid}") from None


def parse_params(pairs: Iterable[str]) -> dict[str, str]:
    """Turn ``key=value`` strings into a dict. Values may contain '='."""
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise InvalidConnection(f"Expected key=value, got '{pair}'")
        if key in params:
            raise InvalidConnection(f"Parameter '{key}' given twice")
        params[key] = value.strip()
    return params


def check_params(db_type: DatabaseType, params: Mapping[str, str]) -> None:
    """Raise InvalidConnection unless ``params`` fit the engine's parameter set."""
    engine = ENGINES[db_type]
    problems: list[str] = []
    missing = sorted(engine.required - params.keys())
    if missing:
        problems.append(f"missing {', '.join(missing)}")
    unknown = sorted(params.keys() - engine.accepted)
    if unknown:
        accepted = ", ".join(sorted(engine.accepted)) or "none"
        problems.append(f"unknown {', '.join(unknown)} (accepted: {accepted})")
    for key in sorted(engine.integers & params.keys()):
        if not params[key].isdigit() or int(params[key]) == 0:
            problems.append(f"{key} must be a positive integer, got '{params[key]}'")
    if problems:
        raise InvalidConnection(f"Invalid {db_type.value} connection: {'; '.join(problems)}")


def build_config(name: str, db_type: str, params: Mapping[str, str]) -> ConnectionConfig:
    """Validated ConnectionConfig from user-supplied pieces."""
    parsed_type = parse_db_type(db_type)
    check_params(parsed_type, params)
    return ConnectionConfig(name=name, db_type=parsed_type, params=dict(params))


def resolve(value: str) -> ConnectionConfig:
    """Resolve a --db value: a saved connection name, else ``type:key=val,...``."""
    saved = get_connection(value)
    if saved is not None:
        return saved

    db_type, sep, rest = value.partition(":")
    if not sep:
        raise InvalidConnection(
            f"Connection '{value}' not found in {_CONNECTIONS_FILE} "
            f"and not in 'type:key=val' format.\n"
            f"  Add it: sqlwarden connect add {value} <type> <param>=<val>"
        )
    pairs = [p for p in rest.split(",") if p.strip()]
    return build_config(db_type, db_type, parse_params(pairs))


def masked_params(config: ConnectionConfig) -> dict[str, str]:
    """Listing-safe copy of the connection parameters."""
    masked: dict[str, str] = {}
    for key, value in config.params.items():
        if key == "dsn":
            masked[key] = _URL_PASSWORD.sub(r"\g<1>****\g<2>", value)
        elif key in SECRET_PARAMS:
            masked[key] = "****"
        else:
            masked[key] = value
    return masked


# -- Storage ---------------------------------------------------------------------


def _read_file() -> dict[str, dict]:
    if not _CONNECTIONS_FILE.exists():
        return {}
    with _CONNECTIONS_FILE.open("rb") as f:
        return tomllib.load(f)


def _write_file(configs: Iterable[ConnectionConfig]) -> None:
    # JSON string escaping is valid TOML basic-string escaping.
    lines: list[str] = []
    for config in sorted(configs, key=lambda c: c.name):
        lines.append(f"[{json.dumps(config.name)}]")
        lines.append(f"type = {json.dumps(config.db_type.value)}")
        lines.extend(f"{key} = {json.dumps(value)}" for key, value in config.params.items())
        lines.append("")

    _CONNECTIONS_FILE.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    # 0600 from creation: the file holds passwords.
    fd = os.open(_CONNECTIONS_FILE, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write("\n".join(lines))
    os.chmod(_CONNECTIONS_FILE, 0o600)


def _from_entry(name: str, entry: Mapping[str, object]) -> ConnectionConfig:
    params = {k: str(v) for k, v in entry.items() if k != "type"}
    try:
        return build_config(name, str(entry.get("type", "")), params)
    except InvalidConnection as e:
        raise InvalidConnection(f"Saved connection '{name}' in {_CONNECTIONS_FILE}: {e}") from e


def list_connections() -> list[ConnectionConfig]:
    """All saved connections, sorted by name."""
    return sorted(
        (_from_entry(name, entry) for name, entry in _read_file().items()),
        key=lambda c: c.name,
    )


def get_connection(name: str) -> ConnectionConfig | None:
    """A saved connection, or None if no entry has this name."""
    entry = _read_file().get(name)
    if entry is None:
        return None
    return _from_entry(name, entry)


def save_connection(config: ConnectionConfig) -> Path:
    """Validate ``config`` and store it, replacing any entry with the same name."""
    check_params(config.db_type, config.params)
    others = [c for c in list_connections() if c.name != config.name]
    _write_file([*others, config])
    return _CONNECTIONS_FILE


def remove_connection(name: str) -> bool:
    """Remove a saved connection. Returns False if there was none."""
    data = _read_file()
    if name not in data:
        return False
    del data[name]
    if not data:
        _CONNECTIONS_FILE.unlink(missing_ok=True)
    else:
        _write_file(_from_entry(n, entry) for n, entry in data.items())
    return True
