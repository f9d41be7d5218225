from vcs_hub.domains.repository_domain import RepositoryDomain

__all__ = [
    "RepositoryDomain",
]
