"""Pick the transport a repository is reached over.

Every function here is a pure function of the repository record.
"""

from __future__ import annotations

from vcs_core.errors import MalformedURIError

from .repository import Repository, ServeMode
from .transport import Transport, is_http_protocol, is_ssh_protocol, transport_for_protocol
from .uri import URI, has_explicit_scheme, parse_scheme_uri, parse_scp_uri
from .vcs import VCS_SVN


def remote_uri_protocol(raw_uri: str | None) -> str | None:
    """Protocol a raw remote string resolves to, or ``None`` when it has none."""
    candidate = str(raw_uri or "")
    if not candidate:
        return None
    if candidate.startswith("/"):
        return "file"
    if has_explicit_scheme(candidate):
        try:
            return parse_scheme_uri(candidate).protocol
        except MalformedURIError:
            return candidate.split("://", 1)[0].lower()
    try:
        scp_uri = parse_scp_uri(candidate)
    except MalformedURIError:
        return None
    if scp_uri.host and scp_uri.path:
        return "ssh"
    return None


def remote_uri_object(repository: Repository) -> URI | None:
    return repository.remote_uri_object()


def remote_protocol(repository: Repository) -> str | None:
    uri = remote_uri_object(repository)
    if uri is None:
        return None
    return uri.protocol


def should_use_ssh(repository: Repository) -> bool:
    if repository.is_hosted:
        return False
    return is_ssh_protocol(remote_protocol(repository))


def should_use_http(repository: Repository) -> bool:
    if repository.is_hosted:
        return False
    return is_http_protocol(remote_protocol(repository))


def should_use_svn_protocol(repository: Repository) -> bool:
    if repository.is_hosted or repository.vcs.kind != VCS_SVN:
        return False
    return remote_protocol(repository) == "svn"


def remote_transport(repository: Repository) -> Transport | None:
    """Transport for talking to a mirrored repository's remote."""
    if repository.is_hosted:
        return None
    if should_use_ssh(repository):
        return Transport.SSH
    if should_use_http(repository):
        return Transport.HTTP
    if should_use_svn_protocol(repository):
        return Transport.SVN
    return transport_for_protocol(remote_protocol(repository))


def hosted_clone_transport(repository: Repository) -> Transport | None:
    """Transport a hosted repository is best cloned over.

    Read/write beats read-only; on a tie SSH beats HTTP. ``None`` when
    neither transport is served.
    """
    serve_ssh = repository.serve_over_ssh
    serve_http = repository.serve_over_http
    if serve_ssh is ServeMode.READWRITE:
        return Transport.SSH
    if serve_http is ServeMode.READWRITE:
        return Transport.HTTP
    if serve_ssh is not ServeMode.OFF:
        return Transport.SSH
    if serve_http is not ServeMode.OFF:
        return Transport.HTTP
    return None


__all__ = [
    "hosted_clone_transport",
    "remote_protocol",
    "remote_transport",
    "remote_uri_object",
    "remote_uri_protocol",
    "should_use_http",
    "should_use_ssh",
    "should_use_svn_protocol",
]
