"""Build argument vectors and environments for version control commands.

A :class:`CommandSpec` keeps secrets wrapped. ``resolved_argv()`` is the
only place they are opened for execution, and it is called by the process
runner at spawn time.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from vcs_core.envelope import MASK, OpaqueEnvelope
from vcs_core.paths import SupportPaths

from .command_pattern import ArgvItem, format_argv
from .credentials import CredentialHolder, CredentialResolver
from .protocol import remote_transport
from .repository import Repository
from .transport import Transport

LOGGER = logging.getLogger("vcs_hub.commands")

CREDENTIAL_ENV_VAR = "PHABRICATOR_CREDENTIAL"


@dataclass(frozen=True)
class CommandSpec:
    argv: tuple[ArgvItem, ...]
    env: dict[str, str] = field(default_factory=dict)
    cwd: Path | None = None

    def resolved_argv(self) -> list[str]:
        return [item.unwrap() if isinstance(item, OpaqueEnvelope) else item for item in self.argv]

    def display_argv(self) -> list[str]:
        return [MASK if isinstance(item, OpaqueEnvelope) else item for item in self.argv]

    def display_command(self) -> str:
        return shlex.join(self.display_argv())

    def mask_output(self, text: str) -> str:
        """Replace echoed secrets in tool output with the mask.

        User names stay readable; a short one like ``git`` would otherwise
        blank out unrelated words.
        """
        for item in self.argv:
            if isinstance(item, OpaqueEnvelope) and item and item.scrub_output:
                text = text.replace(item.unwrap(), MASK)
        return text


class CommandBuilder:
    def __init__(
        self,
        *,
        paths: SupportPaths,
        environment_name: str,
        resolver: CredentialResolver,
    ) -> None:
        self._paths = paths
        self._environment_name = environment_name
        self._resolver = resolver

    def local_environment(self, repository: Repository) -> dict[str, str]:
        return repository.vcs.common_environment(paths=self._paths, environment_name=self._environment_name)

    def remote_environment(self, repository: Repository) -> dict[str, str]:
        env = self.local_environment(repository)
        if remote_transport(repository) is Transport.SSH:
            # The wrapper looks the secret up by reference; the secret itself stays out.
            if repository.credential_ref:
                env[CREDENTIAL_ENV_VAR] = repository.credential_ref
            env.update(repository.vcs.ssh_environment(self._paths.ssh_wrapper))
        return env

    def _credential_for(self, repository: Repository, transport: Transport | None) -> CredentialHolder | None:
        if not repository.credential_ref:
            return None
        if not repository.vcs.wants_argument_credentials(transport):
            return None
        return self._resolver.resolve(repository.credential_ref)

    def build_remote_command(self, repository: Repository, pattern: str, *args: Any) -> CommandSpec:
        """Command that talks to the repository's remote endpoint."""
        transport = remote_transport(repository)
        credential = self._credential_for(repository, transport)
        full_pattern, full_args = repository.vcs.format_remote_command(
            pattern,
            list(args),
            transport=transport,
            credential=credential,
            ssh_wrapper=self._paths.ssh_wrapper,
        )
        spec = CommandSpec(
            argv=tuple(format_argv(full_pattern, full_args)),
            env=self.remote_environment(repository),
        )
        self._log_spec(repository, spec, operation="build_remote_command", transport=transport)
        return spec

    def build_local_command(self, repository: Repository, pattern: str, *args: Any) -> CommandSpec:
        """Command run against the on-disk working copy."""
        repository.assert_working_copy_available()
        full_pattern, full_args = repository.vcs.format_local_command(pattern, list(args))
        cwd = Path(repository.local_path) if repository.uses_local_working_copy() and repository.local_path else None
        spec = CommandSpec(
            argv=tuple(format_argv(full_pattern, full_args)),
            env=self.local_environment(repository),
            cwd=cwd,
        )
        self._log_spec(repository, spec, operation="build_local_command", transport=None)
        return spec

    def _log_spec(
        self,
        repository: Repository,
        spec: CommandSpec,
        *,
        operation: str,
        transport: Transport | None,
    ) -> None:
        LOGGER.debug(
            "Built command for %s over %s: %s",
            repository.monogram,
            transport.value if transport is not None else "local",
            spec.display_command(),
            extra={
                "component": "commands",
                "operation": operation,
                "repository_id": repository.id or "",
                "vcs": repository.vcs.kind,
                "result": "built",
            },
        )


__all__ = ["CREDENTIAL_ENV_VAR", "CommandBuilder", "CommandSpec"]
