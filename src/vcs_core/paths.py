from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from . import shared as core_shared

SSH_WRAPPER_RELATIVE_PATH = Path("bin") / "ssh-connect"
EMPTY_HOME_RELATIVE_PATH = "support/empty/"


@dataclass(frozen=True)
class SupportPaths:
    """Filesystem locations the command layer points version control tools at."""

    wrapper_root: Path

    @property
    def ssh_wrapper(self) -> str:
        return str(self.wrapper_root / SSH_WRAPPER_RELATIVE_PATH)

    @property
    def empty_home(self) -> str:
        # Git reads $HOME/.gitconfig; the trailing slash marks a directory.
        return f"{self.wrapper_root}/{EMPTY_HOME_RELATIVE_PATH}"


def default_wrapper_root() -> Path:
    return core_shared.repo_root(Path(__file__))


def resolve_wrapper_root(paths_values: Mapping[str, Any] | None) -> Path:
    if paths_values is not None:
        configured = str(paths_values.get("wrapper_root") or "").strip()
        if configured:
            return Path(configured).expanduser().resolve()
    return default_wrapper_root()


def default_vcs_hub_data_dir(home: Path | None = None) -> Path:
    resolved_home = (home or Path.home()).expanduser()
    return resolved_home / ".local" / "share" / "vcs_hub"


def resolve_vcs_hub_data_dir(paths_values: Mapping[str, Any] | None) -> Path:
    if paths_values is not None:
        configured = str(paths_values.get("data_dir") or "").strip()
        if configured:
            return Path(configured).expanduser().resolve()
    return default_vcs_hub_data_dir()


def is_descendant(path: str | Path, root: str | Path) -> bool:
    candidate = Path(path).expanduser().resolve()
    ancestor = Path(root).expanduser().resolve()
    return candidate == ancestor or ancestor in candidate.parents
