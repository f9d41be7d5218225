"""Per-tool behaviour for the supported version control systems.

Everything that differs between Git, Subversion and Mercurial lives on a
:class:`VersionControlSystem` subclass. Records carry an instance, never a
raw kind string, so an unsupported kind fails once in
:func:`vcs_for_kind` instead of at every call site.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from vcs_core.errors import UnsupportedVCSError
from vcs_core.paths import SupportPaths

from .command_pattern import prefix_pattern
from .credentials import CredentialHolder
from .transport import Transport

VCS_GIT = "git"
VCS_SVN = "svn"
VCS_MERCURIAL = "hg"

LANG_ENV_VAR = "LANG"
FORCED_LANG = "en_US.UTF-8"
ENVIRONMENT_ENV_VAR = "PHABRICATOR_ENV"

_UNTRUSTED_CONFIG_LINE = re.compile(r"ignoring untrusted configuration option .*\n$")


class VersionControlSystem(ABC):
    kind: str = ""
    display_name: str = ""
    binary: str = ""
    default_branch: str | None = None
    ssh_clone_scheme = "ssh"
    serves_over_http = True
    uses_branch_filters = False
    commit_identifier_length: int | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionControlSystem):
            return NotImplemented
        return self.kind == other.kind

    def __hash__(self) -> int:
        return hash(self.kind)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def common_environment(self, *, paths: SupportPaths, environment_name: str) -> dict[str, str]:
        env = {
            # Command output is parsed; keep it in English.
            LANG_ENV_VAR: FORCED_LANG,
            ENVIRONMENT_ENV_VAR: str(environment_name),
        }
        env.update(self.environment_additions(paths))
        return env

    def environment_additions(self, paths: SupportPaths) -> dict[str, str]:
        del paths
        return {}

    def ssh_environment(self, ssh_wrapper: str) -> dict[str, str]:
        del ssh_wrapper
        return {}

    def format_local_command(self, pattern: str, args: list[Any]) -> tuple[str, list[Any]]:
        return prefix_pattern(self.binary, pattern), list(args)

    @abstractmethod
    def format_remote_command(
        self,
        pattern: str,
        args: list[Any],
        *,
        transport: Transport | None,
        credential: CredentialHolder | None,
        ssh_wrapper: str,
    ) -> tuple[str, list[Any]]:
        ...

    def wants_argument_credentials(self, transport: Transport | None) -> bool:
        del transport
        return False

    def uses_local_working_copy(self, *, hosted: bool) -> bool:
        del hosted
        return True

    def is_working_copy_bare(self, local_path: str) -> bool:
        del local_path
        return False

    def hook_directories(self, local_path: str) -> list[str]:
        del local_path
        return []

    def can_mirror(self) -> bool:
        return False

    def can_use_path_tree(self) -> bool:
        return True

    def can_allow_dangerous_changes(self) -> bool:
        return False

    def hosted_clone_path(self, clone_name: str) -> str:
        del clone_name
        return ""

    def normalize_repository_path(self, path: str) -> str:
        return path.strip("/")

    def short_commit_identifier(self, commit_identifier: str) -> str:
        if self.commit_identifier_length is None:
            return commit_identifier
        return commit_identifier[: self.commit_identifier_length]


class GitVCS(VersionControlSystem):
    kind = VCS_GIT
    display_name = "Git"
    binary = "git"
    default_branch = "master"
    uses_branch_filters = True
    commit_identifier_length = 12

    def environment_additions(self, paths: SupportPaths) -> dict[str, str]:
        # Readable, empty HOME: no user gitconfig is ever loaded.
        return {"HOME": paths.empty_home}

    def ssh_environment(self, ssh_wrapper: str) -> dict[str, str]:
        return {"GIT_SSH": ssh_wrapper}

    def format_remote_command(
        self,
        pattern: str,
        args: list[Any],
        *,
        transport: Transport | None,
        credential: CredentialHolder | None,
        ssh_wrapper: str,
    ) -> tuple[str, list[Any]]:
        del transport, credential, ssh_wrapper
        return prefix_pattern(self.binary, pattern), list(args)

    def is_working_copy_bare(self, local_path: str) -> bool:
        return not (Path(local_path) / ".git").exists()

    def hook_directories(self, local_path: str) -> list[str]:
        root = str(local_path).rstrip("/")
        if self.is_working_copy_bare(local_path):
            return [f"{root}/hooks/pre-receive-hooks.d/"]
        return [f"{root}/.git/hooks/pre-receive-hooks.d/"]

    def can_mirror(self) -> bool:
        return True

    def can_allow_dangerous_changes(self) -> bool:
        return True

    def hosted_clone_path(self, clone_name: str) -> str:
        return f"{clone_name}.git"

    def normalize_repository_path(self, path: str) -> str:
        trimmed = path.rstrip("/")
        if trimmed.endswith(".git"):
            trimmed = trimmed[: -len(".git")]
        return trimmed.strip("/")


class SubversionVCS(VersionControlSystem):
    kind = VCS_SVN
    display_name = "Subversion"
    binary = "svn"
    ssh_clone_scheme = "svn+ssh"
    serves_over_http = False

    def ssh_environment(self, ssh_wrapper: str) -> dict[str, str]:
        return {"SVN_SSH": ssh_wrapper}

    def format_local_command(self, pattern: str, args: list[Any]) -> tuple[str, list[Any]]:
        return prefix_pattern(f"{self.binary} --non-interactive", pattern), list(args)

    def wants_argument_credentials(self, transport: Transport | None) -> bool:
        return transport in (Transport.HTTP, Transport.SVN)

    def format_remote_command(
        self,
        pattern: str,
        args: list[Any],
        *,
        transport: Transport | None,
        credential: CredentialHolder | None,
        ssh_wrapper: str,
    ) -> tuple[str, list[Any]]:
        del ssh_wrapper
        flags = ["--non-interactive", "--no-auth-cache"]
        flag_args: list[Any] = []
        if self.wants_argument_credentials(transport):
            if transport is Transport.HTTP:
                flags.append("--trust-server-cert")
            if credential is not None:
                flags.extend(["--username", "%P", "--password", "%P"])
                flag_args.extend([credential.username, credential.password])
        prefix = " ".join([self.binary, *flags])
        return prefix_pattern(prefix, pattern), [*flag_args, *args]

    def uses_local_working_copy(self, *, hosted: bool) -> bool:
        return hosted

    def hook_directories(self, local_path: str) -> list[str]:
        return [f"{str(local_path).rstrip('/')}/hooks/pre-commit-hooks.d/"]

    def can_use_path_tree(self) -> bool:
        return False


class MercurialVCS(VersionControlSystem):
    kind = VCS_MERCURIAL
    display_name = "Mercurial"
    binary = "hg"
    default_branch = "default"
    commit_identifier_length = 12

    def environment_additions(self, paths: SupportPaths) -> dict[str, str]:
        del paths
        # Plain mode ignores user config and extensions.
        return {"HGPLAIN": "1"}

    def format_remote_command(
        self,
        pattern: str,
        args: list[Any],
        *,
        transport: Transport | None,
        credential: CredentialHolder | None,
        ssh_wrapper: str,
    ) -> tuple[str, list[Any]]:
        del credential
        if transport is Transport.SSH:
            # Mercurial has no SSH wrapper environment variable.
            return prefix_pattern(f"{self.binary} --config ui.ssh=%s", pattern), [ssh_wrapper, *args]
        return prefix_pattern(self.binary, pattern), list(args)

    def can_mirror(self) -> bool:
        return True

    def can_allow_dangerous_changes(self) -> bool:
        return True

    def hosted_clone_path(self, clone_name: str) -> str:
        return f"{clone_name}/"


_VCS_BY_KIND: dict[str, VersionControlSystem] = {
    vcs.kind: vcs for vcs in (GitVCS(), SubversionVCS(), MercurialVCS())
}


def supported_vcs_kinds() -> tuple[str, ...]:
    return tuple(_VCS_BY_KIND)


def vcs_for_kind(kind: Any) -> VersionControlSystem:
    if isinstance(kind, VersionControlSystem):
        return kind
    normalized = str(kind or "").strip().lower()
    vcs = _VCS_BY_KIND.get(normalized)
    if vcs is None:
        raise UnsupportedVCSError(
            f"Unrecognized version control system {kind!r}; expected one of: {', '.join(_VCS_BY_KIND)}."
        )
    return vcs


def filter_mercurial_debug_output(stdout: str) -> str:
    """Drop the untrusted-config warnings ``hg --debug`` prints into stdout."""
    lines = re.split(r"(?<=\n)", stdout)
    return "".join(_UNTRUSTED_CONFIG_LINE.sub("", line) for line in lines)


__all__ = [
    "ENVIRONMENT_ENV_VAR",
    "GitVCS",
    "MercurialVCS",
    "SubversionVCS",
    "VCS_GIT",
    "VCS_MERCURIAL",
    "VCS_SVN",
    "VersionControlSystem",
    "filter_mercurial_debug_output",
    "supported_vcs_kinds",
    "vcs_for_kind",
]
