from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from vcs_hub.protocol import (
    hosted_clone_transport,
    remote_protocol,
    remote_transport,
    remote_uri_object,
    should_use_http,
    should_use_ssh,
    should_use_svn_protocol,
)
from vcs_hub.repository import Repository, RepositoryDetails, ServeMode
from vcs_hub.transport import Transport
from vcs_hub.vcs import vcs_for_kind


def _repository(vcs: str = "git", **details: Any) -> Repository:
    return Repository(
        name="Example",
        callsign="EX",
        vcs=vcs_for_kind(vcs),
        phid="PHID-REPO-example",
        id=1,
        details=RepositoryDetails.from_dict(details),
    )


@pytest.mark.parametrize(
    ("vcs", "remote", "ssh", "http", "svn", "transport"),
    [
        ("git", "ssh://git@example.com/repo.git", True, False, False, Transport.SSH),
        ("git", "git@github.com:org/repo.git", True, False, False, Transport.SSH),
        ("git", "https://example.com/repo.git", False, True, False, Transport.HTTP),
        ("git", "git://example.com/repo.git", False, False, False, Transport.GIT),
        ("svn", "svn+ssh://svn.example.com/repo", True, False, False, Transport.SSH),
        ("svn", "http://svn.example.com/repo", False, True, False, Transport.HTTP),
        ("svn", "svn://svn.example.com/repo", False, False, True, Transport.SVN),
        ("svn", "/srv/svn/proj", False, False, False, Transport.LOCAL),
        ("hg", "ssh://hg@example.com/repo", True, False, False, Transport.SSH),
        ("hg", "https://hg.example.com/repo", False, True, False, Transport.HTTP),
    ],
)
def test_remote_transport_follows_remote_protocol(
    vcs: str,
    remote: str,
    ssh: bool,
    http: bool,
    svn: bool,
    transport: Transport,
) -> None:
    repository = _repository(vcs, **{"remote-uri": remote})
    assert should_use_ssh(repository) is ssh
    assert should_use_http(repository) is http
    assert should_use_svn_protocol(repository) is svn
    assert remote_transport(repository) is transport


def test_svn_protocol_requires_subversion() -> None:
    repository = _repository("git", **{"remote-uri": "svn://example.com/repo"})
    assert remote_protocol(repository) == "svn"
    assert not should_use_svn_protocol(repository)


def test_absolute_path_remote_reads_as_file_protocol() -> None:
    repository = _repository("svn", **{"remote-uri": "/srv/svn/proj"})
    assert remote_protocol(repository) == "file"


def test_hosted_repository_ignores_remote_uri() -> None:
    repository = _repository("git", **{"hosting-enabled": True, "remote-uri": "ssh://example.com/r"})
    assert not should_use_ssh(repository)
    assert not should_use_http(repository)
    assert remote_protocol(repository) is None
    assert remote_transport(repository) is None


def test_hosted_repository_never_parses_stored_remote_uri() -> None:
    repository = _repository("git", **{"hosting-enabled": True, "remote-uri": "not a uri"})
    assert remote_uri_object(repository) is None
    assert remote_protocol(repository) is None


def test_repository_without_remote_has_no_transport() -> None:
    repository = _repository("git")
    assert remote_protocol(repository) is None
    assert remote_transport(repository) is None


@pytest.mark.parametrize(
    ("ssh", "http", "expected"),
    [
        ("readwrite", "readonly", Transport.SSH),
        ("readonly", "readwrite", Transport.HTTP),
        ("readwrite", "readwrite", Transport.SSH),
        ("readonly", "readonly", Transport.SSH),
        ("off", "readonly", Transport.HTTP),
        ("readonly", "off", Transport.SSH),
        ("off", "off", None),
    ],
)
def test_hosted_clone_transport_prefers_read_write_then_ssh(ssh: str, http: str, expected: Transport | None) -> None:
    repository = _repository(
        "git",
        **{"hosting-enabled": True, "serve-over-ssh": ssh, "serve-over-http": http},
    )
    assert hosted_clone_transport(repository) is expected


def test_subversion_never_serves_over_http() -> None:
    repository = _repository(
        "svn",
        **{"hosting-enabled": True, "serve-over-ssh": "off", "serve-over-http": "readwrite"},
    )
    assert repository.serve_over_http is ServeMode.OFF
    assert hosted_clone_transport(repository) is None


def test_read_write_reads_as_read_only_when_not_hosted() -> None:
    repository = _repository("git", **{"serve-over-ssh": "readwrite", "serve-over-http": "bogus"})
    assert repository.serve_over_ssh is ServeMode.READONLY
    assert repository.serve_over_http is ServeMode.OFF
