from __future__ import annotations

import os
import re
import secrets
import string
import urllib.parse
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any

from vcs_core import paths as core_paths
from vcs_core import shared as core_shared
from vcs_core.config import PolicyConfig
from vcs_core.errors import ConfigError, WorkingCopyUnavailableError

from .uri import URI, parse_uri
from .vcs import VCS_SVN, VersionControlSystem, vcs_for_kind

PHID_PREFIX = "PHID-REPO-"
_PHID_ALPHABET = string.ascii_lowercase + string.digits
_CALLSIGN_PATTERN = re.compile(r"^[A-Z]+$")
_CLONE_NAME_SEPARATORS = re.compile(r"[/ :\-]+")


class ServeMode(str, Enum):
    OFF = "off"
    READONLY = "readonly"
    READWRITE = "readwrite"

    @classmethod
    def parse(cls, value: Any) -> "ServeMode":
        if isinstance(value, ServeMode):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.OFF

    @property
    def display_name(self) -> str:
        return {
            ServeMode.OFF: "Off",
            ServeMode.READONLY: "Read Only",
            ServeMode.READWRITE: "Read/Write",
        }[self]


@dataclass(frozen=True)
class BranchFilter:
    """Set of branch names; an empty filter lets every branch through."""

    branches: frozenset[str] = frozenset()

    def allows(self, branch: str) -> bool:
        return not self.branches or branch in self.branches

    def to_list(self) -> list[str]:
        return sorted(self.branches)

    @classmethod
    def from_value(cls, value: Any, *, label: str) -> "BranchFilter":
        if value is None:
            return cls()
        if isinstance(value, str):
            names = core_shared.normalize_csv(value).split(",")
        elif isinstance(value, Mapping):
            names = [str(name) for name, enabled in value.items() if enabled]
        elif isinstance(value, (list, tuple, set, frozenset)):
            names = [str(name).strip() for name in value]
        else:
            raise ConfigError(f"{label} must be a list of branch names.")
        return cls(branches=frozenset(name for name in names if name))


def _detail_bool(value: Any, *, label: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ConfigError(f"{label} must be a boolean.")


def _detail_str(value: Any, *, label: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{label} must be a string.")
    return value if value.strip() else None


_BOOL_DETAILS = {
    "hosting-enabled": "hosting_enabled",
    "importing": "importing",
    "tracking-enabled": "tracking_enabled",
    "disable-autoclose": "disable_autoclose",
    "allow-dangerous-changes": "allow_dangerous_changes",
}
_STR_DETAILS = {
    "remote-uri": "remote_uri",
    "local-path": "local_path",
    "clone-name": "clone_name",
    "default-branch": "default_branch",
    "svn-subpath": "svn_subpath",
    "description": "description",
}
_SERVE_DETAILS = {
    "serve-over-ssh": "serve_over_ssh",
    "serve-over-http": "serve_over_http",
}
_FILTER_DETAILS = {
    "branch-filter": "branch_filter",
    "close-commits-filter": "close_commits_filter",
}
_ALL_DETAILS = {**_BOOL_DETAILS, **_STR_DETAILS, **_SERVE_DETAILS, **_FILTER_DETAILS}


@dataclass(frozen=True)
class RepositoryDetails:
    hosting_enabled: bool = False
    remote_uri: str | None = None
    local_path: str | None = None
    serve_over_ssh: ServeMode = ServeMode.OFF
    serve_over_http: ServeMode = ServeMode.OFF
    clone_name: str | None = None
    default_branch: str | None = None
    svn_subpath: str | None = None
    description: str | None = None
    branch_filter: BranchFilter = field(default_factory=BranchFilter)
    close_commits_filter: BranchFilter = field(default_factory=BranchFilter)
    importing: bool = False
    tracking_enabled: bool = False
    disable_autoclose: bool = False
    allow_dangerous_changes: bool = False

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> "RepositoryDetails":
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise ConfigError("Repository details must be an object.")
        unknown = sorted(str(key) for key in payload if key not in _ALL_DETAILS)
        if unknown:
            raise ConfigError("Unknown repository detail keys: " + ", ".join(unknown))

        values: dict[str, Any] = {}
        for key, attribute in _BOOL_DETAILS.items():
            if key in payload:
                values[attribute] = _detail_bool(payload[key], label=key)
        for key, attribute in _STR_DETAILS.items():
            if key in payload:
                values[attribute] = _detail_str(payload[key], label=key)
        for key, attribute in _SERVE_DETAILS.items():
            if key in payload:
                values[attribute] = ServeMode.parse(payload[key])
        for key, attribute in _FILTER_DETAILS.items():
            if key in payload:
                values[attribute] = BranchFilter.from_value(payload[key], label=key)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for key, attribute in _BOOL_DETAILS.items():
            payload[key] = bool(getattr(self, attribute))
        for key, attribute in _STR_DETAILS.items():
            payload[key] = getattr(self, attribute)
        for key, attribute in _SERVE_DETAILS.items():
            payload[key] = getattr(self, attribute).value
        for key, attribute in _FILTER_DETAILS.items():
            payload[key] = getattr(self, attribute).to_list()
        return payload

    def updated(self, update: Mapping[str, Any]) -> "RepositoryDetails":
        merged = self.to_dict()
        merged.update(dict(update))
        return RepositoryDetails.from_dict(merged)


def generate_repository_phid() -> str:
    return PHID_PREFIX + "".join(secrets.choice(_PHID_ALPHABET) for _ in range(20))


@dataclass(frozen=True)
class Repository:
    name: str
    callsign: str
    vcs: VersionControlSystem
    phid: str
    id: int | None = None
    details: RepositoryDetails = field(default_factory=RepositoryDetails)
    credential_ref: str | None = None
    view_policy: str = ""
    edit_policy: str = ""
    push_policy: str = ""

    @property
    def monogram(self) -> str:
        return f"r{self.callsign}"

    @property
    def uri(self) -> str:
        return f"/diffusion/{self.callsign}/"

    @property
    def is_hosted(self) -> bool:
        return self.details.hosting_enabled

    @property
    def local_path(self) -> str | None:
        return self.details.local_path

    @property
    def is_importing(self) -> bool:
        return self.details.importing

    @property
    def is_tracked(self) -> bool:
        return self.details.tracking_enabled

    def remote_uri_object(self) -> URI | None:
        """Parsed remote of a mirrored repository; hosted ones have none."""
        raw_uri = self.details.remote_uri
        if self.is_hosted or not raw_uri:
            return None
        if raw_uri.startswith("/"):
            return parse_uri("file://" + raw_uri)
        return parse_uri(raw_uri)

    def public_remote_uri(self) -> str:
        uri = self.remote_uri_object()
        return "" if uri is None else str(uri.with_password(None))

    def with_details(self, details: RepositoryDetails) -> "Repository":
        return replace(self, details=details)

    def with_id(self, repository_id: int) -> "Repository":
        return replace(self, id=repository_id)

    def _normalize_serve_mode(self, mode: ServeMode) -> ServeMode:
        if mode is ServeMode.READWRITE and not self.is_hosted:
            return ServeMode.READONLY
        return mode

    @property
    def serve_over_ssh(self) -> ServeMode:
        return self._normalize_serve_mode(self.details.serve_over_ssh)

    @property
    def serve_over_http(self) -> ServeMode:
        if not self.vcs.serves_over_http:
            return ServeMode.OFF
        return self._normalize_serve_mode(self.details.serve_over_http)

    @property
    def clone_name(self) -> str:
        """Directory name a checkout of this repository should use."""
        if self.details.clone_name:
            return self.details.clone_name
        name = _CLONE_NAME_SEPARATORS.sub("-", self.name.lower()).strip("-")
        return name or self.callsign

    @property
    def default_branch(self) -> str | None:
        return self.details.default_branch or self.vcs.default_branch

    @property
    def default_arcanist_branch(self) -> str:
        return self.default_branch or "svn"

    def _branch_in_filter(self, branch: str, branch_filter: BranchFilter) -> bool:
        if not self.vcs.uses_branch_filters:
            return True
        return branch_filter.allows(branch)

    def should_track_branch(self, branch: str) -> bool:
        return self._branch_in_filter(branch, self.details.branch_filter)

    def should_autoclose_branch(self, branch: str) -> bool:
        if self.is_importing:
            return False
        if self.details.disable_autoclose:
            return False
        if not self.should_track_branch(branch):
            return False
        return self._branch_in_filter(branch, self.details.close_commits_filter)

    def format_commit_name(self, commit_identifier: str) -> str:
        return f"r{self.callsign}{self.vcs.short_commit_identifier(commit_identifier)}"

    def uses_local_working_copy(self) -> bool:
        return self.vcs.uses_local_working_copy(hosted=self.is_hosted)

    def is_working_copy_bare(self) -> bool:
        return self.vcs.is_working_copy_bare(self.local_path or "")

    def hook_directories(self) -> list[str]:
        if not self.is_hosted or not self.local_path:
            return []
        return self.vcs.hook_directories(self.local_path)

    def can_destroy_working_copy(self, default_local_path: str | None) -> bool:
        if self.is_hosted:
            return False
        if not self.local_path or not default_local_path:
            return False
        return core_paths.is_descendant(self.local_path, default_local_path)

    def can_mirror(self) -> bool:
        return self.vcs.can_mirror()

    def can_use_path_tree(self) -> bool:
        return self.vcs.can_use_path_tree()

    def can_allow_dangerous_changes(self) -> bool:
        return self.is_hosted and self.vcs.can_allow_dangerous_changes()

    def should_allow_dangerous_changes(self) -> bool:
        return self.details.allow_dangerous_changes

    def assert_working_copy_available(self) -> None:
        if not self.uses_local_working_copy():
            return
        local_path = self.local_path
        if not local_path:
            raise WorkingCopyUnavailableError(f"Repository {self.monogram} has no local path configured.")
        path = Path(local_path)
        if not path.exists():
            raise WorkingCopyUnavailableError(f"Working copy {local_path} does not exist.")
        if not path.is_dir():
            raise WorkingCopyUnavailableError(f"Working copy {local_path} is not a directory.")
        if not os.access(path, os.R_OK):
            raise WorkingCopyUnavailableError(f"Working copy {local_path} is not readable.")

    def subversion_path_uri(self, path: str | None = None, commit: str | int | None = None) -> str:
        if self.vcs.kind != VCS_SVN:
            raise ConfigError(f"Repository {self.monogram} is not a Subversion repository.")

        if self.is_hosted:
            uri = "file://" + (self.local_path or "")
        else:
            uri = self.details.remote_uri or ""
            if uri.startswith("/"):
                uri = "file://" + uri

        uri = uri.rstrip("/")
        if path:
            quoted = urllib.parse.quote(path, safe="/")
            uri = uri + "/" + quoted.lstrip("/")

        if path is not None or commit is not None:
            # Peg revision marker; "@" inside a path must be escaped by a trailing one.
            uri += "@"
        if commit is not None:
            uri += str(commit)
        return uri

    def subversion_base_uri(self, commit: str | int | None = None) -> str:
        return self.subversion_path_uri(self.details.svn_subpath or None, commit)

    def to_dict(self, *, production_uri: str | None = None) -> dict[str, Any]:
        """Viewer-facing summary; ``uri`` is absolute when ``production_uri`` is given."""
        uri = self.uri
        if production_uri:
            uri = production_uri.rstrip("/") + uri
        return {
            "id": self.id,
            "name": self.name,
            "phid": self.phid,
            "callsign": self.callsign,
            "monogram": self.monogram,
            "vcs": self.vcs.kind,
            "uri": uri,
            "remote_uri": self.public_remote_uri(),
            "description": self.details.description,
            "is_active": self.is_tracked,
            "is_hosted": self.is_hosted,
            "is_importing": self.is_importing,
        }

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "callsign": self.callsign,
            "phid": self.phid,
            "vcs": self.vcs.kind,
            "details": self.details.to_dict(),
            "credential_ref": self.credential_ref,
            "view_policy": self.view_policy,
            "edit_policy": self.edit_policy,
            "push_policy": self.push_policy,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Repository":
        raw_id = record.get("id")
        return cls(
            id=int(raw_id) if raw_id is not None else None,
            name=str(record.get("name") or ""),
            callsign=str(record.get("callsign") or ""),
            phid=str(record.get("phid") or ""),
            vcs=vcs_for_kind(record.get("vcs")),
            details=RepositoryDetails.from_dict(record.get("details") or {}),
            credential_ref=str(record.get("credential_ref") or "").strip() or None,
            view_policy=str(record.get("view_policy") or ""),
            edit_policy=str(record.get("edit_policy") or ""),
            push_policy=str(record.get("push_policy") or ""),
        )


def normalize_callsign(raw_value: Any) -> str:
    callsign = str(raw_value or "").strip()
    if not _CALLSIGN_PATTERN.match(callsign):
        raise ConfigError(f"Callsign {raw_value!r} must consist of uppercase letters only.")
    return callsign


def initialize_new_repository(
    *,
    name: str,
    callsign: str,
    vcs: Any,
    policy: PolicyConfig,
    details: RepositoryDetails | None = None,
    credential_ref: str | None = None,
) -> Repository:
    """Build an unsaved repository that inherits the site's default policies."""
    return Repository(
        name=str(name or "").strip(),
        callsign=normalize_callsign(callsign),
        vcs=vcs_for_kind(vcs),
        phid=generate_repository_phid(),
        details=details or RepositoryDetails(),
        credential_ref=str(credential_ref or "").strip() or None,
        view_policy=policy.default_view,
        edit_policy=policy.default_edit,
        push_policy=policy.default_push,
    )


__all__ = [
    "BranchFilter",
    "Repository",
    "RepositoryDetails",
    "ServeMode",
    "generate_repository_phid",
    "initialize_new_repository",
    "normalize_callsign",
]
