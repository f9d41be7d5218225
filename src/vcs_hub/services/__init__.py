"""VCS Hub service modules."""

__all__ = [
    "repository_service",
]
