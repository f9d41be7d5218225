from __future__ import annotations

import json
import logging
import os
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

from vcs_core.envelope import OpaqueEnvelope
from vcs_core.errors import CredentialNotFoundError, CredentialResolutionError

LOGGER = logging.getLogger("vcs_hub.credentials")

OMNIPOTENT_ACTOR = "omnipotent"


@dataclass(frozen=True)
class CredentialHolder:
    """A resolved username/secret pair, both kept inside envelopes."""

    credential_ref: str
    username: OpaqueEnvelope
    password: OpaqueEnvelope


class CredentialVault(Protocol):
    def lookup(self, credential_ref: str) -> Mapping[str, Any] | None:
        ...


def _write_private_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = path.parent / f".{path.name}.{uuid.uuid4().hex}.tmp"
    fd = os.open(str(tmp_path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fp:
            fp.write(content)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass


class JsonCredentialVault:
    """File-backed vault mapping credential references to username/password records."""

    def __init__(self, *, vault_file: Path, lock: Lock | None = None) -> None:
        self.vault_file = Path(vault_file)
        self._lock = lock or Lock()

    def _load_locked(self) -> dict[str, Any]:
        if not self.vault_file.exists():
            return {}
        try:
            loaded = json.loads(self.vault_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise CredentialResolutionError(f"Credential vault {self.vault_file} is unreadable.") from exc
        if not isinstance(loaded, dict):
            raise CredentialResolutionError(f"Credential vault {self.vault_file} must contain a JSON object.")
        return loaded

    def lookup(self, credential_ref: str) -> Mapping[str, Any] | None:
        with self._lock:
            record = self._load_locked().get(str(credential_ref))
        if not isinstance(record, dict):
            return None
        return record

    def store(self, credential_ref: str, *, username: str, password: str) -> None:
        ref = str(credential_ref or "").strip()
        if not ref:
            raise CredentialResolutionError("credential_ref is required.")
        with self._lock:
            records = self._load_locked()
            records[ref] = {"username": str(username), "password": str(password)}
            _write_private_file(self.vault_file, json.dumps(records, indent=2))

    def remove(self, credential_ref: str) -> bool:
        with self._lock:
            records = self._load_locked()
            if str(credential_ref) not in records:
                return False
            del records[str(credential_ref)]
            _write_private_file(self.vault_file, json.dumps(records, indent=2))
        return True


class CredentialResolver:
    """Turns an opaque credential reference into a :class:`CredentialHolder`.

    Nothing is cached: each call goes back to the vault so rotated secrets
    take effect on the next command.
    """

    def __init__(self, *, vault: CredentialVault) -> None:
        self._vault = vault

    def resolve(self, credential_ref: str, *, actor: str = OMNIPOTENT_ACTOR) -> CredentialHolder:
        ref = str(credential_ref or "").strip()
        if not ref:
            raise CredentialNotFoundError("No credential reference was provided.")
        record = self._vault.lookup(ref)
        if record is None:
            LOGGER.warning(
                "Credential reference %s did not resolve for actor %s.",
                ref,
                actor,
                extra={"component": "credentials", "operation": "resolve", "result": "not_found"},
            )
            raise CredentialNotFoundError(f"Credential {ref} could not be found.")
        username = record.get("username")
        password = record.get("password")
        if not isinstance(username, str) or not isinstance(password, str):
            raise CredentialResolutionError(f"Credential {ref} is missing a username or password.")
        LOGGER.debug(
            "Resolved credential %s for actor %s.",
            ref,
            actor,
            extra={"component": "credentials", "operation": "resolve", "result": "resolved"},
        )
        return CredentialHolder(
            credential_ref=ref,
            username=OpaqueEnvelope(username, scrub_output=False),
            password=OpaqueEnvelope(password),
        )


__all__ = [
    "CredentialHolder",
    "CredentialResolver",
    "CredentialVault",
    "JsonCredentialVault",
    "OMNIPOTENT_ACTOR",
]
