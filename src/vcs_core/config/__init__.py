from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11
    import tomli as tomllib

from vcs_core.errors import ConfigError


_SECTION_KEYS = ("environment", "paths", "diffusion", "policy", "logging")
DEFAULT_ENVIRONMENT_NAME = "default"
DEFAULT_PRODUCTION_URI = "http://localhost/"
DEFAULT_VIEW_POLICY = "users"
DEFAULT_EDIT_POLICY = "admin"
DEFAULT_PUSH_POLICY = "users"


def _ensure_dict(value: object, *, label: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{label} must be a table/object.")
    return dict(value)


def _ensure_optional_str(value: object, *, label: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{label} must be a string.")
    return value


def _ensure_str(value: object, *, label: str, default: str) -> str:
    resolved = _ensure_optional_str(value, label=label)
    if resolved is None or not resolved.strip():
        return default
    return resolved.strip()


def _ensure_optional_port(value: object, *, label: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"{label} must be an integer between 1 and 65535.")
    raw = str(value).strip()
    if not raw:
        return None
    try:
        port = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{label} must be an integer between 1 and 65535, got {raw!r}.") from exc
    if port <= 0 or port > 65535:
        raise ConfigError(f"{label} must be an integer between 1 and 65535, got {raw!r}.")
    return port


@dataclass(frozen=True)
class EnvironmentConfig:
    name: str = DEFAULT_ENVIRONMENT_NAME
    values: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PathsConfig:
    values: dict[str, Any] = field(default_factory=dict)

    @property
    def default_local_path(self) -> str | None:
        configured = str(self.values.get("default_local_path") or "").strip()
        return configured or None


@dataclass(frozen=True)
class DiffusionConfig:
    production_uri: str = DEFAULT_PRODUCTION_URI
    ssh_user: str | None = None
    ssh_port: int | None = None
    values: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PolicyConfig:
    default_view: str = DEFAULT_VIEW_POLICY
    default_edit: str = DEFAULT_EDIT_POLICY
    default_push: str = DEFAULT_PUSH_POLICY


@dataclass(frozen=True)
class LoggingConfig:
    values: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SiteConfig:
    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    diffusion: DiffusionConfig = field(default_factory=DiffusionConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extras: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | dict[str, Any]) -> "SiteConfig":
        if not isinstance(payload, Mapping):
            raise ConfigError("Config payload root must be a table/object.")

        raw = dict(payload)
        missing_sections = [section for section in _SECTION_KEYS if section not in raw]
        if missing_sections:
            raise ConfigError(
                "Config payload missing required sections: " + ", ".join(missing_sections)
            )

        paths = PathsConfig(values=_ensure_dict(raw.get("paths"), label="section 'paths'"))
        logging = LoggingConfig(values=_ensure_dict(raw.get("logging"), label="section 'logging'"))

        extras = {k: v for k, v in raw.items() if k not in _SECTION_KEYS}
        return cls(
            environment=_parse_environment(raw),
            paths=paths,
            diffusion=_parse_diffusion(raw),
            policy=_parse_policy(raw),
            logging=logging,
            extras=extras,
        )

    @classmethod
    def from_toml_path(cls, path: str | Path) -> "SiteConfig":
        config_path = Path(path)
        try:
            raw = config_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Unable to read config file {config_path}: {exc}") from exc
        try:
            parsed = tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {config_path}: {exc}") from exc
        if not isinstance(parsed, dict):
            raise ConfigError("Config payload root must be a table/object.")
        return cls.from_dict(parsed)


def _parse_environment(raw_root: dict[str, Any]) -> EnvironmentConfig:
    environment_raw = _ensure_dict(raw_root.get("environment"), label="section 'environment'")
    name = _ensure_str(
        environment_raw.pop("name", None),
        label="environment.name",
        default=DEFAULT_ENVIRONMENT_NAME,
    )
    return EnvironmentConfig(name=name, values=environment_raw)


def _parse_diffusion(raw_root: dict[str, Any]) -> DiffusionConfig:
    diffusion_raw = _ensure_dict(raw_root.get("diffusion"), label="section 'diffusion'")
    production_uri = _ensure_str(
        diffusion_raw.pop("production_uri", None),
        label="diffusion.production_uri",
        default=DEFAULT_PRODUCTION_URI,
    )
    if "://" not in production_uri:
        raise ConfigError("diffusion.production_uri must be an absolute URI, for example https://vcs.example.com/.")
    ssh_user = _ensure_optional_str(diffusion_raw.pop("ssh_user", None), label="diffusion.ssh_user")
    ssh_port = _ensure_optional_port(diffusion_raw.pop("ssh_port", None), label="diffusion.ssh_port")
    return DiffusionConfig(
        production_uri=production_uri,
        ssh_user=(ssh_user or "").strip() or None,
        ssh_port=ssh_port,
        values=diffusion_raw,
    )


def _parse_policy(raw_root: dict[str, Any]) -> PolicyConfig:
    policy_raw = _ensure_dict(raw_root.get("policy"), label="section 'policy'")
    return PolicyConfig(
        default_view=_ensure_str(policy_raw.get("default_view"), label="policy.default_view", default=DEFAULT_VIEW_POLICY),
        default_edit=_ensure_str(policy_raw.get("default_edit"), label="policy.default_edit", default=DEFAULT_EDIT_POLICY),
        default_push=_ensure_str(policy_raw.get("default_push"), label="policy.default_push", default=DEFAULT_PUSH_POLICY),
    )


def load_site_config(path: str | Path) -> SiteConfig:
    return SiteConfig.from_toml_path(path)


def load_site_config_dict(payload: Mapping[str, Any] | dict[str, Any]) -> SiteConfig:
    return SiteConfig.from_dict(payload)


__all__ = [
    "DEFAULT_ENVIRONMENT_NAME",
    "DEFAULT_PRODUCTION_URI",
    "DiffusionConfig",
    "EnvironmentConfig",
    "LoggingConfig",
    "PathsConfig",
    "PolicyConfig",
    "SiteConfig",
    "load_site_config",
    "load_site_config_dict",
]
