"""
Git operations used by the deploy flow, built on GitPython.
"""

import logging
from typing import Optional
from pathlib import Path
from git import Commit, Repo, RemoteProgress, GitCommandError, PushInfo

try:
    from .common import DeployError
except ImportError:
    from common import DeployError


logger = logging.getLogger(__name__)


class _LogProgress(RemoteProgress):
    def update(self, op_code, cur_count, max_count=None, message=''):
        if message:
            logger.debug(message)


def open_repo(repo_path: str | Path = '.') -> Repo:
    path = Path(repo_path).resolve()
    if not (path / '.git').exists():
        raise DeployError(f"'{path}' is not a git repository.")
    return Repo(str(path))


def current_branch(repo: Repo) -> Optional[str]:
    """Name of the checked out branch, None when the repo has no commits."""
    if not repo.head.is_valid():
        return None
    if repo.head.is_detached:
        return 'HEAD'
    return repo.active_branch.name


def clone(url: str, dest: str | Path, reference: Optional[str | Path] = None) -> Repo:
    kwargs = {}
    if reference is not None:
        kwargs['reference'] = str(reference)
    try:
        return Repo.clone_from(url, str(dest), progress=_LogProgress(), **kwargs)
    except GitCommandError as e:
        logger.debug(f"git clone failed: {e}")
        raise DeployError(f"failed to clone {url}") from e


def stage_all(repo: Repo) -> None:
    repo.git.add('-A')


def commit(repo: Repo, message: str) -> Commit:
    if not message or not message.strip():
        raise ValueError("Commit message is required")
    if repo.head.is_valid() and not repo.is_dirty(index=True, working_tree=False):
        raise DeployError("nothing to commit, the deployment is already up to date")
    try:
        return repo.index.commit(message)
    except (GitCommandError, ValueError, OSError) as e:
        raise DeployError(f"git commit failed: {e}") from e


def push(repo: Repo, remote_name: str = 'origin', force: bool = False) -> str:
    if repo.head.is_detached:
        refspec = 'HEAD'
    else:
        head = repo.active_branch.name
        refspec = f"{head}:{head}"

    remote = repo.remote(remote_name)
    try:
        results = remote.push(refspec, progress=_LogProgress(), force=force)
    except GitCommandError as e:
        raise DeployError(f"git push failed: {e.stderr.strip() if e.stderr else e}") from e

    failed = [r for r in results if r.flags & (PushInfo.ERROR | PushInfo.REJECTED | PushInfo.REMOTE_REJECTED)]
    if failed or not results:
        summary = "; ".join(str(r.summary).strip() for r in failed) or "no refs pushed"
        raise DeployError(f"git push to {remote.url} failed: {summary}")

    return "\n".join(str(r.summary).strip() for r in results)
