from __future__ import annotations

import re
from dataclasses import dataclass

from vcs_core.errors import (
    AmbiguousSCPSyntaxError,
    DisallowedProtocolError,
    MalformedURIError,
    TypedRepositoryError,
)
from vcs_core.logging import redact_log_text

from .protocol import remote_uri_protocol
from .transport import ALLOWED_REMOTE_PROTOCOLS
from .uri import URI, has_explicit_scheme, parse_uri

_HOST_THEN_NON_PORT_COLON = re.compile(r"^(?:\[[^\]]*\]|[^/:\[]+):[^\d]")


def _is_scheme_with_scp_path(raw: str) -> bool:
    """True for "proto://domain:/path", an SCP-style remote given a scheme.

    A digit after the colon is read as a port. Bracketed IPv6 literals are
    skipped; other host forms are not special-cased.
    """
    scheme, _, remainder = raw.partition("://")
    if not remainder or ":" in scheme or "@" in scheme:
        return False
    authority_end = remainder.find("/")
    authority = remainder if authority_end < 0 else remainder[:authority_end]
    if "@" in authority:
        remainder = remainder[authority.rfind("@") + 1 :]
    return bool(_HOST_THEN_NON_PORT_COLON.match(remainder))


@dataclass(frozen=True)
class RemoteURICheck:
    """Outcome of validating a raw remote URI; exactly one of ``uri``/``error`` is set."""

    raw: str
    uri: URI | None = None
    protocol: str | None = None
    error: TypedRepositoryError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> URI:
        if self.error is not None:
            raise self.error
        assert self.uri is not None
        return self.uri

    def payload(self) -> dict[str, object]:
        if self.error is not None:
            return {"valid": False, "protocol": self.protocol, **self.error.payload()}
        return {"valid": True, "protocol": self.protocol}


def check_remote_uri(raw_uri: str) -> RemoteURICheck:
    raw = str(raw_uri if raw_uri is not None else "")
    if raw.strip() != raw:
        return RemoteURICheck(
            raw=raw,
            error=MalformedURIError("The remote URI has leading or trailing whitespace."),
        )
    if not raw:
        return RemoteURICheck(raw=raw, error=MalformedURIError("The remote URI is empty."))

    if has_explicit_scheme(raw) and _is_scheme_with_scp_path(raw):
        return RemoteURICheck(
            raw=raw,
            protocol=remote_uri_protocol(raw),
            error=AmbiguousSCPSyntaxError(
                "The remote URI is not formatted correctly. Remote URIs with an explicit "
                "protocol should be in the form 'proto://domain/path', not "
                "'proto://domain:/path'. The ':/path' syntax is only valid in SCP-style URIs."
            ),
        )

    protocol = remote_uri_protocol(raw)
    if protocol not in ALLOWED_REMOTE_PROTOCOLS:
        if protocol is None:
            return RemoteURICheck(
                raw=raw,
                error=MalformedURIError(
                    f"The remote URI {redact_log_text(raw)!r} could not be parsed. It should begin 'ssh://', "
                    "'http://', 'https://', 'git://', 'svn://', 'svn+ssh://', or be in the "
                    "form 'git@domain.com:path'."
                ),
            )
        # file:// is refused: it would read another repository's working copy on disk.
        return RemoteURICheck(
            raw=raw,
            protocol=protocol,
            error=DisallowedProtocolError(
                f"The URI protocol {protocol!r} is not allowed. It should begin 'ssh://', "
                "'http://', 'https://', 'git://', 'svn://', 'svn+ssh://', or be in the "
                "form 'git@domain.com:path'."
            ),
        )

    try:
        uri = parse_uri(raw)
    except MalformedURIError as exc:
        return RemoteURICheck(raw=raw, protocol=protocol, error=exc)
    return RemoteURICheck(raw=raw, uri=uri, protocol=protocol)


def assert_valid_remote_uri(raw_uri: str) -> URI:
    return check_remote_uri(raw_uri).raise_for_error()


__all__ = ["RemoteURICheck", "assert_valid_remote_uri", "check_remote_uri"]
