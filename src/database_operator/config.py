"""Config file loading and auto-discovery for the Database operator.

Searches for ``database-operator.yaml`` in the current directory and
parent directories and parses it into an ``OperatorConfig``.  Every key
is optional; a missing file yields the built-in defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "database-operator.yaml"


@dataclass(frozen=True)
class RequeueDelays:
    """How long the caller should wait before the next pass, per outcome."""

    default: timedelta = timedelta(seconds=10)
    status_update: timedelta = timedelta(seconds=1)
    tenant_creation: timedelta = timedelta(seconds=30)
    storage_await: timedelta = timedelta(seconds=60)
    shared_database_await: timedelta = timedelta(seconds=60)

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> RequeueDelays:
        """Build from a ``{name: seconds}`` mapping, keeping defaults for missing keys."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"Unknown requeue delay(s): {', '.join(unknown)}"
            raise ValueError(msg)
        kwargs: dict[str, timedelta] = {}
        for name, seconds in data.items():
            value = float(seconds)
            if value < 0:
                msg = f"Requeue delay '{name}' must not be negative, got {seconds}"
                raise ValueError(msg)
            kwargs[name] = timedelta(seconds=value)
        return cls(**kwargs)

    def as_seconds(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name).total_seconds() for f in fields(self)}


@dataclass(frozen=True)
class OperatorConfig:
    """Parsed operator configuration."""

    config_path: Path | None = None
    requeue_delays: RequeueDelays = field(default_factory=RequeueDelays)
    cluster_domain: str = "cluster.local"
    grpc_port: int = 2135
    log_level: str = "INFO"


def find_config(start: Path | None = None) -> Path | None:
    """Walk from *start* (default ``cwd()``) up to the filesystem root.

    Returns the first ``database-operator.yaml`` found, or ``None``.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(
    path: str | Path | None = None,
    *,
    auto_discover: bool = True,
) -> OperatorConfig:
    """Load an operator config file.

    Resolution order:

    1. Explicit *path* (error if it doesn't exist).
    2. Auto-discover by walking parent directories.
    3. Return an empty ``OperatorConfig`` (all defaults).
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).resolve()
        if not config_path.is_file():
            msg = f"Config file not found: {config_path}"
            raise FileNotFoundError(msg)
    elif auto_discover:
        config_path = find_config()

    if config_path is None:
        return OperatorConfig()

    return _parse_config(config_path)


def _parse_config(config_path: Path) -> OperatorConfig:
    text = config_path.read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}

    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping in {config_path}, got {type(data).__name__}"
        raise ValueError(msg)

    delays = data.get("requeue_delays")
    if delays is not None and not isinstance(delays, dict):
        msg = f"'requeue_delays' must be a mapping in {config_path}"
        raise ValueError(msg)

    return OperatorConfig(
        config_path=config_path,
        requeue_delays=RequeueDelays.from_mapping(delays),
        cluster_domain=data.get("cluster_domain", "cluster.local"),
        grpc_port=int(data.get("grpc_port", 2135)),
        log_level=str(data.get("log_level", "INFO")).upper(),
    )
