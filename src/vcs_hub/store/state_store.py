from __future__ import annotations

import json
import logging
import os
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Callable

from vcs_core.errors import ConfigError, RepositoryNotFoundError

LOGGER = logging.getLogger("vcs_hub.store")

DERIVED_TABLES = ("filesystem", "pathchange", "summary")


def new_repository_state() -> dict[str, Any]:
    return {
        "next_id": 1,
        "repositories": {},
        "status_messages": {},
        "filesystem": {},
        "pathchange": {},
        "summary": {},
    }


def status_message_key(repository_id: int, status_type: str) -> str:
    return f"{int(repository_id)}:{status_type}"


class RepositoryStateStore:
    """JSON-file store for repository records and their status messages.

    Every mutation is a locked read-modify-write that lands on disk through
    a temp file and ``os.replace``: a reader sees the old document or the
    new one, never a partial write.
    """

    def __init__(
        self,
        *,
        state_file: Path,
        lock: Lock | None = None,
        new_state_factory: Callable[[], dict[str, Any]] = new_repository_state,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.state_file = Path(state_file)
        self._lock = lock or Lock()
        self._new_state_factory = new_state_factory
        self._clock = clock

    def load_raw(self) -> dict[str, Any]:
        with self._lock:
            return self._load_locked()

    def _load_locked(self) -> dict[str, Any]:
        if not self.state_file.exists():
            return self._new_state_factory()
        try:
            loaded = json.loads(self.state_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            preserved_state_path = self._preserve_corrupt_state_file_locked()
            raise RuntimeError(
                f"State file is corrupt JSON and was moved to {preserved_state_path}."
            ) from exc
        if not isinstance(loaded, dict):
            preserved_state_path = self._preserve_corrupt_state_file_locked()
            raise RuntimeError(
                "State file must contain a JSON object and was moved to "
                f"{preserved_state_path}."
            )
        state = self._new_state_factory()
        state.update(loaded)
        return state

    def _save_locked(self, state: dict[str, Any]) -> None:
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.state_file.parent / f".{self.state_file.name}.{uuid.uuid4().hex}.tmp"
        try:
            with tmp_path.open("w", encoding="utf-8") as fp:
                json.dump(state, fp, indent=2)
            os.replace(tmp_path, self.state_file)
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass

    def _mutate(self, mutation: Callable[[dict[str, Any]], Any]) -> Any:
        with self._lock:
            state = self._load_locked()
            result = mutation(state)
            self._save_locked(state)
        return result

    def _preserve_corrupt_state_file_locked(self) -> Path:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        base_name = f"{self.state_file.name}.corrupt-{timestamp}"
        preserved_path = self.state_file.with_name(base_name)
        suffix = 1
        while preserved_path.exists():
            preserved_path = self.state_file.with_name(f"{base_name}.{suffix}")
            suffix += 1
        try:
            self.state_file.replace(preserved_path)
        except OSError as exc:
            raise RuntimeError(
                f"Failed to preserve corrupt state file {self.state_file}: {exc}"
            ) from exc
        LOGGER.error(
            "Moved corrupt state file to %s.",
            preserved_path,
            extra={"component": "store", "operation": "load", "result": "corrupt"},
        )
        return preserved_path

    # Repositories

    def save_repository(self, record: dict[str, Any]) -> dict[str, Any]:
        """Insert (no ``id``) or replace (with ``id``) a repository record.

        Callsigns are unique; the check runs under the same lock as the write.
        """

        def mutation(state: dict[str, Any]) -> dict[str, Any]:
            saved = dict(record)
            repositories = state["repositories"]
            if saved.get("id") is None:
                saved["id"] = int(state.get("next_id") or 1)
                state["next_id"] = saved["id"] + 1
            elif str(saved["id"]) not in repositories:
                raise RepositoryNotFoundError(f"Repository {saved['id']} does not exist.")
            callsign = str(saved.get("callsign") or "")
            for key, existing in repositories.items():
                if not callsign or key == str(saved["id"]) or not isinstance(existing, dict):
                    continue
                if existing.get("callsign") == callsign:
                    raise ConfigError(f"Callsign {callsign} is already in use.")
            repositories[str(saved["id"])] = saved
            return saved

        return self._mutate(mutation)

    def repository(self, repository_id: int) -> dict[str, Any]:
        record = self.load_raw()["repositories"].get(str(int(repository_id)))
        if not isinstance(record, dict):
            raise RepositoryNotFoundError(f"Repository {repository_id} does not exist.")
        return record

    def repositories(self) -> list[dict[str, Any]]:
        records = self.load_raw()["repositories"].values()
        return sorted((record for record in records if isinstance(record, dict)), key=lambda item: int(item["id"]))

    def delete_repository(self, repository_id: int) -> None:
        """Remove a repository with its status messages and derived records."""
        repo_key = str(int(repository_id))
        prefix = f"{repo_key}:"

        def mutation(state: dict[str, Any]) -> None:
            if repo_key not in state["repositories"]:
                raise RepositoryNotFoundError(f"Repository {repository_id} does not exist.")
            del state["repositories"][repo_key]
            state["status_messages"] = {
                key: value for key, value in state["status_messages"].items() if not key.startswith(prefix)
            }
            for table in DERIVED_TABLES:
                state[table].pop(repo_key, None)

        self._mutate(mutation)
        LOGGER.info(
            "Deleted repository %s.",
            repo_key,
            extra={"component": "store", "operation": "delete_repository", "repository_id": repo_key},
        )

    def record_derived(self, table: str, repository_id: int, record: Any) -> None:
        if table not in DERIVED_TABLES:
            raise ValueError(f"Unknown derived table {table!r}.")

        def mutation(state: dict[str, Any]) -> None:
            state[table].setdefault(str(int(repository_id)), []).append(record)

        self._mutate(mutation)

    def derived_records(self, table: str, repository_id: int) -> list[Any]:
        if table not in DERIVED_TABLES:
            raise ValueError(f"Unknown derived table {table!r}.")
        return list(self.load_raw()[table].get(str(int(repository_id))) or [])

    # Status messages

    def write_status_message(
        self,
        repository_id: int,
        status_type: str,
        status_code: str | None,
        parameters: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Upsert the status row for (repository, type); ``None`` code deletes it."""
        key = status_message_key(repository_id, status_type)

        def mutation(state: dict[str, Any]) -> dict[str, Any] | None:
            messages = state["status_messages"]
            if status_code is None:
                messages.pop(key, None)
                return None
            message = {
                "repository_id": int(repository_id),
                "status_type": str(status_type),
                "status_code": str(status_code),
                "parameters": dict(parameters or {}),
                "epoch": int(self._clock()),
            }
            messages[key] = message
            return message

        return self._mutate(mutation)

    def status_message(self, repository_id: int, status_type: str) -> dict[str, Any] | None:
        message = self.load_raw()["status_messages"].get(status_message_key(repository_id, status_type))
        return message if isinstance(message, dict) else None

    def status_messages(self, repository_id: int) -> list[dict[str, Any]]:
        prefix = f"{int(repository_id)}:"
        messages = self.load_raw()["status_messages"]
        return [messages[key] for key in sorted(messages) if key.startswith(prefix)]


__all__ = ["DERIVED_TABLES", "RepositoryStateStore", "new_repository_state", "status_message_key"]
