from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from vcs_core.errors import ConfigError

from vcs_hub.commands import CommandSpec
from vcs_hub.repository import Repository, RepositoryDetails, initialize_new_repository
from vcs_hub.validation import assert_valid_remote_uri, check_remote_uri

LOGGER = logging.getLogger("vcs_hub.repositories")


class RepositoryDomain:
    def __init__(self, *, state: Any) -> None:
        self._state = state

    def _load(self, repository_id: int) -> Repository:
        return Repository.from_record(self._state.store.repository(repository_id))

    def _validate_details(self, details: RepositoryDetails) -> None:
        if details.remote_uri and not details.hosting_enabled:
            assert_valid_remote_uri(details.remote_uri)

    def _describe(self, repository: Repository) -> dict[str, Any]:
        payload = repository.to_dict(production_uri=self._state.config.diffusion.production_uri)
        payload["clone_uri"] = self._state.clone_uris.public_clone_uri(repository)
        payload["normalized_path"] = self._state.clone_uris.normalized_path(repository)
        payload["serve_over_ssh"] = repository.serve_over_ssh.value
        payload["serve_over_http"] = repository.serve_over_http.value
        payload["default_branch"] = repository.default_branch
        payload["clone_name"] = repository.clone_name
        payload["hook_directories"] = repository.hook_directories()
        payload["can_destroy_working_copy"] = repository.can_destroy_working_copy(
            self._state.config.paths.default_local_path
        )
        return payload

    def create_repository(
        self,
        *,
        name: str,
        callsign: str,
        vcs: Any,
        details: Mapping[str, Any] | None,
        credential_ref: str | None,
    ) -> dict[str, Any]:
        if not str(name or "").strip():
            raise ConfigError("Repository name is required.")
        repository = initialize_new_repository(
            name=name,
            callsign=callsign,
            vcs=vcs,
            policy=self._state.config.policy,
            details=RepositoryDetails.from_dict(details),
            credential_ref=credential_ref,
        )
        self._validate_details(repository.details)
        saved = Repository.from_record(self._state.store.save_repository(repository.to_record()))
        LOGGER.info(
            "Created repository %s.",
            saved.monogram,
            extra={
                "component": "repositories",
                "operation": "create",
                "repository_id": saved.id,
                "vcs": saved.vcs.kind,
                "result": "created",
            },
        )
        return self._describe(saved)

    def update_repository(
        self,
        repository_id: int,
        *,
        details: Mapping[str, Any] | None = None,
        credential_ref: Any = None,
        clear_credential: bool = False,
    ) -> dict[str, Any]:
        repository = self._load(repository_id)
        if details:
            repository = repository.with_details(repository.details.updated(details))
        self._validate_details(repository.details)
        record = repository.to_record()
        if clear_credential:
            record["credential_ref"] = None
        elif credential_ref is not None:
            record["credential_ref"] = str(credential_ref).strip() or None
        saved = Repository.from_record(self._state.store.save_repository(record))
        return self._describe(saved)

    def delete_repository(self, repository_id: int) -> dict[str, Any]:
        self._state.store.delete_repository(repository_id)
        return {"deleted": True, "id": int(repository_id)}

    def repository(self, repository_id: int) -> Repository:
        return self._load(repository_id)

    def describe_repository(self, repository_id: int) -> dict[str, Any]:
        return self._describe(self._load(repository_id))

    def list_repositories(self) -> list[dict[str, Any]]:
        return [self._describe(Repository.from_record(record)) for record in self._state.store.repositories()]

    def validate_remote_uri(self, raw_uri: Any) -> dict[str, Any]:
        return check_remote_uri(str(raw_uri if raw_uri is not None else "")).payload()

    def public_clone_uri(self, repository_id: int) -> dict[str, Any]:
        repository = self._load(repository_id)
        return {
            "id": repository.id,
            "clone_uri": self._state.clone_uris.public_clone_uri(repository),
        }

    def status_message(self, repository_id: int, status_type: str) -> dict[str, Any] | None:
        self._load(repository_id)
        return self._state.store.status_message(repository_id, status_type)

    def status_messages(self, repository_id: int) -> list[dict[str, Any]]:
        self._load(repository_id)
        return self._state.store.status_messages(repository_id)

    def write_status_message(
        self,
        repository_id: int,
        status_type: str,
        *,
        status_code: Any,
        parameters: Any,
    ) -> dict[str, Any] | None:
        self._load(repository_id)
        if status_code is not None and not str(status_code).strip():
            raise ConfigError("status_code must be a non-empty string or null.")
        if parameters is not None and not isinstance(parameters, Mapping):
            raise ConfigError("parameters must be an object.")
        return self._state.store.write_status_message(
            repository_id,
            status_type,
            None if status_code is None else str(status_code).strip(),
            dict(parameters or {}),
        )

    def build_remote_command(self, repository_id: int, pattern: str, *args: Any) -> CommandSpec:
        return self._state.commands.build_remote_command(self._load(repository_id), pattern, *args)

    def build_local_command(self, repository_id: int, pattern: str, *args: Any) -> CommandSpec:
        return self._state.commands.build_local_command(self._load(repository_id), pattern, *args)


__all__ = ["RepositoryDomain"]
