from vcs_hub.store.state_store import RepositoryStateStore, new_repository_state

__all__ = ["RepositoryStateStore", "new_repository_state"]
