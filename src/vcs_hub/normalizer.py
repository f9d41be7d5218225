from __future__ import annotations

from typing import Any

from vcs_core.errors import MalformedURIError

from .uri import URI, parse_uri
from .vcs import vcs_for_kind


def normalize_path(uri: URI | str, vcs: Any) -> str:
    """Comparison key for spotting two remotes that name the same repository.

    The key is ``<host>/<path>`` with the host lower-cased and the path
    normalized by the VCS (Git drops a ``.git`` suffix; all kinds drop
    surrounding slashes). Scheme, user, password and port do not take part.
    """
    kind = vcs_for_kind(vcs)
    if isinstance(uri, str):
        try:
            parsed = parse_uri(uri)
        except MalformedURIError:
            return kind.normalize_repository_path(uri)
    else:
        parsed = uri

    path = kind.normalize_repository_path(parsed.path)
    host = (parsed.domain or "").lower()
    if not host:
        return path
    return f"{host}/{path}" if path else host


__all__ = ["normalize_path"]
