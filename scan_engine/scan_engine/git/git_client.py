"""Thin git client for attaching commit provenance to scan results.

All interaction with the ``git`` binary is done through :func:`subprocess.run`
with explicit timeouts and structured error handling so that callers receive
:class:`GitClientError` exceptions with descriptive messages rather than raw
subprocess failures.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

_SUBPROCESS_TIMEOUT = 10  # seconds


class GitClientError(Exception):
    """Raised when a git operation fails or the path is not in a repository."""


def _run_git(
    cmd: list[str],
    cwd: Path,
) -> subprocess.CompletedProcess[str]:
    """Execute a git command and return the completed process.

    Raises
    ------
    GitClientError
        On non-zero exit, timeout, or if the process cannot be started.
    """
    try:
        return subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
            timeout=_SUBPROCESS_TIMEOUT,
        )
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise GitClientError(f"git command failed: {' '.join(cmd)}\nExit code {exc.returncode}: {stderr}") from exc
    except subprocess.TimeoutExpired as exc:
        raise GitClientError(f"git command timed out after {_SUBPROCESS_TIMEOUT}s: {' '.join(cmd)}") from exc
    except FileNotFoundError as exc:
        raise GitClientError("git executable not found. Ensure git is installed and on PATH.") from exc


def _as_directory(path: Path) -> Path:
    return path if path.is_dir() else path.parent


def find_repo_root(path: Path) -> Path | None:
    """Return the top-level directory of the repository containing *path*, if any."""
    try:
        result = _run_git(["git", "rev-parse", "--show-toplevel"], _as_directory(path))
    except GitClientError as exc:
        logger.debug("No git repository at %s: %s", path, exc)
        return None
    return Path(result.stdout.strip())


def get_current_sha(repo_path: Path) -> str:
    """Return the full SHA of the current HEAD commit.

    Raises
    ------
    GitClientError
        If the path is not in a repository, it has no commits, or git fails.
    """
    result = _run_git(["git", "rev-parse", "HEAD"], _as_directory(repo_path))
    return result.stdout.strip()
