from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from vcs_hub.commands import CommandSpec
from vcs_hub.repository import Repository


class RepositoryService:
    def __init__(self, *, domain: Any) -> None:
        self._domain = domain

    def create_repository(
        self,
        *,
        name: str,
        callsign: str,
        vcs: Any,
        details: Mapping[str, Any] | None = None,
        credential_ref: str | None = None,
    ) -> dict[str, Any]:
        return self._domain.create_repository(
            name=name,
            callsign=callsign,
            vcs=vcs,
            details=details,
            credential_ref=credential_ref,
        )

    def update_repository(
        self,
        repository_id: int,
        *,
        details: Mapping[str, Any] | None = None,
        credential_ref: Any = None,
        clear_credential: bool = False,
    ) -> dict[str, Any]:
        return self._domain.update_repository(
            repository_id,
            details=details,
            credential_ref=credential_ref,
            clear_credential=clear_credential,
        )

    def delete_repository(self, repository_id: int) -> dict[str, Any]:
        return self._domain.delete_repository(repository_id)

    def repository(self, repository_id: int) -> Repository:
        return self._domain.repository(repository_id)

    def describe_repository(self, repository_id: int) -> dict[str, Any]:
        return self._domain.describe_repository(repository_id)

    def list_repositories(self) -> list[dict[str, Any]]:
        return self._domain.list_repositories()

    def validate_remote_uri(self, raw_uri: Any) -> dict[str, Any]:
        return self._domain.validate_remote_uri(raw_uri)

    def public_clone_uri(self, repository_id: int) -> dict[str, Any]:
        return self._domain.public_clone_uri(repository_id)

    def status_message(self, repository_id: int, status_type: str) -> dict[str, Any] | None:
        return self._domain.status_message(repository_id, status_type)

    def status_messages(self, repository_id: int) -> list[dict[str, Any]]:
        return self._domain.status_messages(repository_id)

    def write_status_message(
        self,
        repository_id: int,
        status_type: str,
        *,
        status_code: Any,
        parameters: Any = None,
    ) -> dict[str, Any] | None:
        return self._domain.write_status_message(
            repository_id,
            status_type,
            status_code=status_code,
            parameters=parameters,
        )

    def build_remote_command(self, repository_id: int, pattern: str, *args: Any) -> CommandSpec:
        return self._domain.build_remote_command(repository_id, pattern, *args)

    def build_local_command(self, repository_id: int, pattern: str, *args: Any) -> CommandSpec:
        return self._domain.build_local_command(repository_id, pattern, *args)


__all__ = ["RepositoryService"]
