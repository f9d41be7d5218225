from __future__ import annotations

from .config import (
    DiffusionConfig,
    PolicyConfig,
    SiteConfig,
    load_site_config,
    load_site_config_dict,
)
from .envelope import OpaqueEnvelope
from .errors import (
    AmbiguousSCPSyntaxError,
    CommandExecutionError,
    CommandFormatError,
    ConfigError,
    CredentialNotFoundError,
    CredentialResolutionError,
    DisallowedProtocolError,
    MalformedURIError,
    RepositoryNotFoundError,
    TypedRepositoryError,
    UnsupportedVCSError,
    WorkingCopyUnavailableError,
)
from .paths import SupportPaths, default_vcs_hub_data_dir, resolve_vcs_hub_data_dir, resolve_wrapper_root

__all__ = [
    "AmbiguousSCPSyntaxError",
    "CommandExecutionError",
    "CommandFormatError",
    "ConfigError",
    "CredentialNotFoundError",
    "CredentialResolutionError",
    "DiffusionConfig",
    "DisallowedProtocolError",
    "MalformedURIError",
    "OpaqueEnvelope",
    "PolicyConfig",
    "RepositoryNotFoundError",
    "SiteConfig",
    "SupportPaths",
    "TypedRepositoryError",
    "UnsupportedVCSError",
    "WorkingCopyUnavailableError",
    "default_vcs_hub_data_dir",
    "load_site_config",
    "load_site_config_dict",
    "resolve_vcs_hub_data_dir",
    "resolve_wrapper_root",
]
