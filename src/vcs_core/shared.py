from __future__ import annotations

from collections.abc import Callable
from pathlib import Path


def repo_root(start_file: Path) -> Path:
    resolved = start_file.resolve()
    for parent in resolved.parents:
        if (parent / "pyproject.toml").exists():
            return parent
    return resolved.parent


def default_config_file(repo_root: Path, cwd: Path | None = None) -> Path:
    del cwd
    return repo_root / "config" / "vcs_hub.toml"


def split_host_port(host: str, *, error_factory: Callable[[str], Exception]) -> tuple[str, int | None]:
    candidate = str(host or "").strip()
    if not candidate:
        return "", None
    if candidate.startswith("["):
        closing = candidate.find("]")
        if closing < 0:
            raise error_factory(f"Invalid host: {host}")
        hostname, rest = candidate[: closing + 1], candidate[closing + 1 :]
        if not rest:
            return hostname, None
        if not rest.startswith(":"):
            raise error_factory(f"Invalid host: {host}")
        port_text = rest[1:]
    elif ":" not in candidate:
        return candidate, None
    else:
        hostname, port_text = candidate.rsplit(":", 1)
    if not hostname:
        raise error_factory(f"Invalid host: {host}")
    if not port_text:
        return hostname, None
    if not port_text.isdigit():
        raise error_factory(f"Invalid host: {host}")
    port = int(port_text)
    if port <= 0 or port > 65535:
        raise error_factory(f"Invalid host: {host}")
    return hostname, port


def normalize_csv(value: str | None) -> str:
    if value is None:
        return ""
    values = [part.strip() for part in value.split(",") if part.strip()]
    return ",".join(values)
