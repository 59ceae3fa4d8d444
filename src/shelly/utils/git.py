"""Wrappers around the local git executable."""

import subprocess
from typing import List, Optional


class GitError(Exception):
    """git could not be run."""
    pass


def _run(args: List[str]) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(
            ["git"] + args,
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise GitError(f"Failed to run git: {e}")


def inside_git_repository() -> bool:
    return _run(["status"]).returncode == 0


def remotes() -> List[str]:
    result = _run(["remote"])
    return result.stdout.split()


def remote_exists(name: str) -> bool:
    return name in remotes()


def add_remote(name: str, url: str) -> bool:
    """Point remote ``name`` at ``url``, replacing any existing remote."""
    remove_remote(name)
    return _run(["remote", "add", name, url]).returncode == 0


def remove_remote(name: str) -> bool:
    return _run(["remote", "rm", name]).returncode == 0


def fetch(remote: str) -> bool:
    return _run(["fetch", remote]).returncode == 0


def add_tracking_branch(name: str, remote_branch: str = "master") -> bool:
    return _run(["checkout", "-b", name, "--track", f"{name}/{remote_branch}"]).returncode == 0


def current_commit() -> Optional[str]:
    result = _run(["rev-parse", "HEAD"])
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def log_range(start: str, end: str) -> str:
    """One line per non-merge commit in ``start..end``: short sha, subject, relative date."""
    fmt = "%C(yellow)%h%Creset %s %C(red)(%cr)%Creset"
    result = _run(["log", "--no-merges", "--oneline", f"--pretty=format:{fmt}", f"{start}..{end}"])
    return result.stdout.strip()
