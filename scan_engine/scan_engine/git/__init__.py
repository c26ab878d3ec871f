"""Git integration for commit provenance."""

from scan_engine.git.git_client import GitClientError, find_repo_root, get_current_sha

__all__ = ["GitClientError", "find_repo_root", "get_current_sha"]
