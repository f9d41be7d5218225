"""Compose the URIs clients use to reach a repository.

``clone_uri_object`` may carry a user name and, for mirrored remotes, a
password. Anything rendered to a viewer goes through ``public_clone_uri``.
"""

from __future__ import annotations

import logging
import re

from vcs_core.config import DiffusionConfig
from vcs_core.envelope import OpaqueEnvelope

from .credentials import CredentialResolver
from .normalizer import normalize_path
from .protocol import hosted_clone_transport, remote_protocol, remote_uri_object
from .repository import Repository
from .transport import Transport, is_http_protocol, is_ssh_protocol
from .uri import URI, SchemeURI, parse_scheme_uri, parse_uri
from .vcs import VCS_SVN

LOGGER = logging.getLogger("vcs_hub.clone_uri")

_ESCAPED_PEG_PATH = re.compile(r"@.*@")


class CloneURIComposer:
    def __init__(self, *, diffusion: DiffusionConfig, resolver: CredentialResolver | None = None) -> None:
        self._diffusion = diffusion
        self._resolver = resolver

    def _production_uri(self) -> SchemeURI:
        return parse_scheme_uri(self._diffusion.production_uri)

    def _hosted_path(self, repository: Repository) -> str:
        return repository.uri + repository.vcs.hosted_clone_path(repository.clone_name)

    def ssh_clone_uri_object(self, repository: Repository) -> SchemeURI:
        base = self._production_uri()
        return SchemeURI(
            scheme=repository.vcs.ssh_clone_scheme,
            host=base.host,
            port=self._diffusion.ssh_port,
            user=self._diffusion.ssh_user,
            path=self._hosted_path(repository),
        )

    def http_clone_uri_object(self, repository: Repository) -> SchemeURI:
        base = self._production_uri()
        return SchemeURI(
            scheme=base.scheme,
            host=base.host,
            port=base.port,
            path=self._hosted_path(repository),
        )

    def _subversion_clone_uri_object(self, repository: Repository) -> URI:
        uri = parse_uri(repository.subversion_base_uri())
        path = uri.path or "/"
        # A path holding its own "@" keeps the trailing escape marker.
        if not _ESCAPED_PEG_PATH.search(path):
            path = path.rstrip("@")
        return uri.with_path(path)

    def clone_uri_object(self, repository: Repository) -> URI | None:
        """Best URI for cloning ``repository``, or ``None`` when nothing is served."""
        if not repository.is_hosted:
            if repository.vcs.kind == VCS_SVN and repository.details.remote_uri:
                return self._subversion_clone_uri_object(repository)
            return remote_uri_object(repository)

        transport = hosted_clone_transport(repository)
        if transport is Transport.SSH:
            return self.ssh_clone_uri_object(repository)
        if transport is Transport.HTTP:
            return self.http_clone_uri_object(repository)
        return None

    def public_clone_uri(self, repository: Repository) -> str:
        uri = self.clone_uri_object(repository)
        if uri is None:
            return ""
        uri = uri.with_password(None)
        # The user name is part of the address only for hosted SSH access.
        if not (repository.is_hosted and is_ssh_protocol(uri.protocol)):
            uri = uri.with_user(None)
        return str(uri)

    def remote_uri_envelope(self, repository: Repository) -> OpaqueEnvelope:
        """Authenticated remote URI for fetching; only ever handed to a command."""
        uri = remote_uri_object(repository)
        if uri is None:
            return OpaqueEnvelope("")
        # Subversion takes --username/--password flags instead.
        if (
            is_http_protocol(remote_protocol(repository))
            and repository.vcs.kind != VCS_SVN
            and repository.credential_ref
            and self._resolver is not None
        ):
            credential = self._resolver.resolve(repository.credential_ref)
            uri = uri.with_user(credential.username.unwrap()).with_password(credential.password.unwrap())
            LOGGER.debug(
                "Embedded credential %s in remote URI for %s.",
                credential.credential_ref,
                repository.monogram,
                extra={"component": "clone_uri", "operation": "remote_uri_envelope", "vcs": repository.vcs.kind},
            )
        return OpaqueEnvelope(str(uri))

    def normalized_path(self, repository: Repository) -> str:
        uri = self.clone_uri_object(repository)
        if uri is None:
            return ""
        return normalize_path(uri, repository.vcs)


__all__ = ["CloneURIComposer"]
