from __future__ import annotations

from enum import Enum

SSH_PROTOCOLS = frozenset({"ssh", "svn+ssh"})
HTTP_PROTOCOLS = frozenset({"http", "https"})
ALLOWED_REMOTE_PROTOCOLS = ("ssh", "http", "https", "git", "svn", "svn+ssh")


class Transport(str, Enum):
    SSH = "ssh"
    HTTP = "http"
    SVN = "svn"
    GIT = "git"
    LOCAL = "local"


def is_ssh_protocol(protocol: str | None) -> bool:
    return str(protocol or "").lower() in SSH_PROTOCOLS


def is_http_protocol(protocol: str | None) -> bool:
    return str(protocol or "").lower() in HTTP_PROTOCOLS


def transport_for_protocol(protocol: str | None) -> Transport | None:
    normalized = str(protocol or "").strip().lower()
    if normalized in SSH_PROTOCOLS:
        return Transport.SSH
    if normalized in HTTP_PROTOCOLS:
        return Transport.HTTP
    if normalized == "svn":
        return Transport.SVN
    if normalized == "git":
        return Transport.GIT
    if normalized == "file":
        return Transport.LOCAL
    return None
