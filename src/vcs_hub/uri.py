"""Repository location model.

A remote is either a scheme-qualified URI (``https://host/path``) or an
SCP-style shorthand (``git@host:path``). The two serialize differently, so
they are kept as separate types sharing one read/edit surface.
"""

from __future__ import annotations

import re
import urllib.parse
from dataclasses import dataclass, field, replace
from typing import Union

from vcs_core import shared as core_shared
from vcs_core.errors import MalformedURIError
from vcs_core.logging import redact_log_text

_SCHEME_PATTERN = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*)://")
# "transport::address" is a Git remote-helper spec, never SCP shorthand.
_SCP_PATTERN = re.compile(r"^(?:([^@/:]+)@)?([^@/:\s]+):([^:].*)$")


@dataclass(frozen=True)
class SchemeURI:
    scheme: str
    host: str = ""
    port: int | None = None
    user: str | None = None
    password: str | None = None
    path: str = ""
    query: str = ""
    fragment: str = ""
    # Source text of edited-out fields, so an untouched URI prints back verbatim.
    raw_userinfo: str | None = field(default=None, compare=False, repr=False)
    raw_hostport: str | None = field(default=None, compare=False, repr=False)
    has_query: bool = field(default=False, compare=False, repr=False)
    has_fragment: bool = field(default=False, compare=False, repr=False)

    @property
    def protocol(self) -> str:
        return self.scheme.lower()

    @property
    def domain(self) -> str:
        return self.host

    def with_user(self, user: str | None) -> "SchemeURI":
        return replace(self, user=user or None, raw_userinfo=None)

    def with_password(self, password: str | None) -> "SchemeURI":
        raw_userinfo = None
        if self.raw_userinfo is not None:
            raw_userinfo = self.raw_userinfo.partition(":")[0]
            if password:
                raw_userinfo += ":" + urllib.parse.quote(password, safe="")
        return replace(self, password=password or None, raw_userinfo=raw_userinfo)

    def with_path(self, path: str) -> "SchemeURI":
        return replace(self, path=path)

    def with_scheme(self, scheme: str) -> "SchemeURI":
        return replace(self, scheme=scheme)

    def with_port(self, port: int | None) -> "SchemeURI":
        return replace(self, port=port, raw_hostport=None)

    def netloc(self) -> str:
        if self.raw_userinfo is not None:
            userinfo = self.raw_userinfo + "@"
        elif self.user is not None:
            userinfo = urllib.parse.quote(self.user, safe="")
            if self.password is not None:
                userinfo += ":" + urllib.parse.quote(self.password, safe="")
            userinfo += "@"
        else:
            userinfo = ""
        if self.raw_hostport is not None:
            return userinfo + self.raw_hostport
        hostport = self.host
        if self.port is not None:
            hostport = f"{hostport}:{self.port}"
        return userinfo + hostport

    def __str__(self) -> str:
        text = f"{self.scheme}://{self.netloc()}{self.path}"
        if self.query or self.has_query:
            text += "?" + self.query
        if self.fragment or self.has_fragment:
            text += "#" + self.fragment
        return text


@dataclass(frozen=True)
class SCPURI:
    """``[user@]host:path`` remote with no explicit scheme; always SSH."""

    host: str
    path: str
    user: str | None = None

    scheme = None
    port = None
    password = None
    query = ""
    fragment = ""

    @property
    def protocol(self) -> str:
        return "ssh"

    @property
    def domain(self) -> str:
        return self.host

    def with_user(self, user: str | None) -> "SCPURI":
        return replace(self, user=user or None)

    def with_password(self, password: str | None) -> "SCPURI":
        # SCP-style remotes have nowhere to carry a password.
        del password
        return self

    def with_path(self, path: str) -> "SCPURI":
        return replace(self, path=path)

    def __str__(self) -> str:
        if self.user:
            return f"{self.user}@{self.host}:{self.path}"
        return f"{self.host}:{self.path}"


URI = Union[SchemeURI, SCPURI]


def has_explicit_scheme(raw: str) -> bool:
    return bool(_SCHEME_PATTERN.match(str(raw or "")))


def parse_scheme_uri(raw: str) -> SchemeURI:
    candidate = str(raw or "")
    match = _SCHEME_PATTERN.match(candidate)
    if not match:
        raise MalformedURIError(f"URI {redact_log_text(candidate)!r} has no scheme.")
    scheme = match.group(1)
    remainder = candidate[match.end() :]

    remainder, fragment_mark, fragment = remainder.partition("#")
    remainder, query_mark, query = remainder.partition("?")
    slash = remainder.find("/")
    if slash < 0:
        netloc, path = remainder, ""
    else:
        netloc, path = remainder[:slash], remainder[slash:]

    user: str | None = None
    password: str | None = None
    userinfo: str | None = None
    if "@" in netloc:
        userinfo, _, hostport = netloc.rpartition("@")
        raw_user, has_password, raw_password = userinfo.partition(":")
        user = urllib.parse.unquote(raw_user)
        if has_password:
            password = urllib.parse.unquote(raw_password)
    else:
        hostport = netloc

    display = redact_log_text(candidate)
    host, port = core_shared.split_host_port(
        hostport,
        error_factory=lambda _message: MalformedURIError(f"URI {display!r} has an invalid host or port."),
    )
    return SchemeURI(
        scheme=scheme,
        host=host,
        port=port,
        user=user,
        password=password,
        path=path,
        query=query,
        fragment=fragment,
        raw_userinfo=userinfo,
        raw_hostport=hostport,
        has_query=bool(query_mark),
        has_fragment=bool(fragment_mark),
    )


def parse_scp_uri(raw: str) -> SCPURI:
    candidate = str(raw or "")
    match = _SCP_PATTERN.match(candidate)
    if not match:
        raise MalformedURIError(f"URI {candidate!r} is not an SCP-style remote.")
    return SCPURI(user=match.group(1) or None, host=match.group(2), path=match.group(3))


def parse_uri(raw: str) -> URI:
    """Parse a scheme-qualified URI, falling back to SCP-style shorthand."""
    candidate = str(raw or "")
    if not candidate.strip():
        raise MalformedURIError("URI is empty.")
    if has_explicit_scheme(candidate):
        return parse_scheme_uri(candidate)
    try:
        return parse_scp_uri(candidate)
    except MalformedURIError:
        raise MalformedURIError(
            f"URI {redact_log_text(candidate)!r} could not be parsed. Use 'proto://domain/path' "
            "or the SCP-style 'user@domain:path' form."
        ) from None


__all__ = [
    "SCPURI",
    "SchemeURI",
    "URI",
    "has_explicit_scheme",
    "parse_scheme_uri",
    "parse_scp_uri",
    "parse_uri",
]
