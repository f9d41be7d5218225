from __future__ import annotations

import pickle
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from vcs_core import shared as core_shared
from vcs_core.envelope import MASK, OpaqueEnvelope
from vcs_core.paths import (
    SupportPaths,
    default_vcs_hub_data_dir,
    is_descendant,
    resolve_vcs_hub_data_dir,
    resolve_wrapper_root,
)


def _error(message: str) -> Exception:
    return ValueError(message)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("example.com", ("example.com", None)),
        ("example.com:2222", ("example.com", 2222)),
        ("example.com:", ("example.com", None)),
        ("[::1]", ("[::1]", None)),
        ("[::1]:22", ("[::1]", 22)),
        ("", ("", None)),
    ],
)
def test_split_host_port(raw: str, expected: tuple[str, int | None]) -> None:
    assert core_shared.split_host_port(raw, error_factory=_error) == expected


@pytest.mark.parametrize("raw", ["example.com:0", "example.com:65536", "example.com:ssh", "[::1", ":22"])
def test_split_host_port_rejects_invalid_values(raw: str) -> None:
    with pytest.raises(ValueError):
        core_shared.split_host_port(raw, error_factory=_error)


def test_normalize_csv() -> None:
    assert core_shared.normalize_csv(" master, ,release ") == "master,release"
    assert core_shared.normalize_csv(None) == ""


def test_default_config_file_lives_under_repo_root() -> None:
    root = core_shared.repo_root(SRC / "vcs_core" / "shared.py")
    assert (root / "pyproject.toml").exists()
    assert core_shared.default_config_file(root) == root / "config" / "vcs_hub.toml"


def test_support_paths_point_inside_wrapper_root() -> None:
    paths = SupportPaths(wrapper_root=Path("/opt/vcs"))
    assert paths.ssh_wrapper == "/opt/vcs/bin/ssh-connect"
    assert paths.empty_home == "/opt/vcs/support/empty/"


def test_resolve_wrapper_root_prefers_configured_value(tmp_path: Path) -> None:
    assert resolve_wrapper_root({"wrapper_root": str(tmp_path)}) == tmp_path.resolve()
    assert (resolve_wrapper_root({}) / "pyproject.toml").exists()


def test_data_dir_defaults_under_home(tmp_path: Path) -> None:
    assert default_vcs_hub_data_dir(tmp_path) == tmp_path / ".local" / "share" / "vcs_hub"
    assert resolve_vcs_hub_data_dir({"data_dir": str(tmp_path / "state")}) == (tmp_path / "state").resolve()


def test_is_descendant(tmp_path: Path) -> None:
    root = tmp_path / "repos"
    assert is_descendant(root / "rX", root)
    assert is_descendant(root, root)
    assert not is_descendant(tmp_path / "elsewhere", root)
    assert not is_descendant(root / ".." / "escape", root)


def test_opaque_envelope_masks_every_rendering() -> None:
    envelope = OpaqueEnvelope("hunter2")

    assert envelope.unwrap() == "hunter2"
    assert str(envelope) == MASK
    assert repr(envelope) == f"OpaqueEnvelope({MASK})"
    assert f"{envelope}" == MASK
    assert "hunter2" not in "%s %r" % (envelope, envelope)
    assert bool(envelope)
    assert not OpaqueEnvelope("")
    assert envelope.scrub_output
    assert not OpaqueEnvelope("bot", scrub_output=False).scrub_output


def test_opaque_envelope_refuses_mutation_and_pickling() -> None:
    envelope = OpaqueEnvelope("hunter2")
    with pytest.raises(AttributeError):
        envelope._value = "other"
    with pytest.raises(TypeError):
        pickle.dumps(envelope)
