"""
Lifecycle of the cached mirror repository.

The mirror is a bare ``git clone --mirror`` of the source repository kept in
a directory that survives between runs. It is only an optimisation: every
failure in here is logged and turned into ``usable=False``, never raised.

Lifecycle:
    - first run: directory empty -> mirror clone (partial, blobless by default)
    - later runs: object store present -> fetch --all --prune --prune-tags
    - refresh mode: directory wiped first, then cloned again

Writes to the mirror happen only in ``MirrorManager.ensure``. A file lock next
to the directory keeps two runs on the same host from refreshing it at once.
"""

import logging
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout
from git.exc import GitCommandError, GitError

from cachedcheckout.git.auth import GitAuth
from cachedcheckout.model.state import MirrorState, has_object_store, is_populated
from cachedcheckout.utils import clear_directory

logger = logging.getLogger(__name__)


class MirrorManager:
    """Owns the mirror directory for the duration of ``ensure``."""

    def __init__(
        self,
        url: str,
        filter_spec: Optional[str] = "blob:none",
        lock_timeout: float = 600.0,
    ) -> None:
        """
        Args:
            url: Remote URL the mirror tracks
            filter_spec: Partial clone filter for new mirrors, None for a full mirror
            lock_timeout: Seconds to wait for another run holding the mirror lock
        """
        self.url = url
        self.filter_spec = filter_spec
        self.lock_timeout = lock_timeout

    def ensure(self, path: Path, force_refresh: bool, auth: GitAuth) -> MirrorState:
        """
        Make ``path`` hold an up to date mirror, as far as possible.

        Args:
            path: Mirror directory (may be missing or empty)
            force_refresh: Wipe the directory before anything else
            auth: Authenticated git invocation

        Returns:
            MirrorState describing the directory after this call
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            lock = FileLock(str(path.with_name(path.name + ".lock")))
            with lock.acquire(timeout=self.lock_timeout):
                return self._ensure_locked(path, force_refresh, auth)
        except Timeout:
            logger.warning(
                f"Mirror at {path} is locked by another run, continuing without it"
            )
            return MirrorState(path=path, exists=is_populated(path), usable=False)
        except (OSError, GitError) as e:
            logger.warning(f"Mirror at {path} is not accessible: {e}")
            return MirrorState(path=path, exists=is_populated(path), usable=False)

    def _ensure_locked(self, path: Path, force_refresh: bool, auth: GitAuth) -> MirrorState:
        if force_refresh and not self.reset(path):
            return MirrorState(path=path, exists=is_populated(path), usable=False)

        if not has_object_store(path):
            if is_populated(path):
                logger.warning(f"Mirror at {path} has no object store, recreating it")
                clear_directory(path)
            self._clone(path, auth)
        else:
            self._refresh(path, auth)

        return self.inspect(path, auth)

    def reset(self, path: Path) -> bool:
        """
        Delete every entry of the mirror directory.

        Returns:
            True if the directory is empty or absent afterwards
        """
        logger.info(f"Refresh requested, wiping mirror at {path}")
        if clear_directory(path):
            return True
        logger.warning(f"Could not fully wipe mirror at {path}, continuing without it")
        return False

    def inspect(self, path: Path, auth: GitAuth) -> MirrorState:
        """Describe the directory without modifying it."""
        exists = is_populated(path)
        usable = exists and has_object_store(path)
        if usable:
            usable = auth.invoke(["rev-parse", "--git-dir"], cwd=path).ok
        return MirrorState(path=path, exists=exists, usable=usable)

    def _clone(self, path: Path, auth: GitAuth) -> None:
        args = ["clone", "--mirror"]
        if self.filter_spec:
            args.append(f"--filter={self.filter_spec}")
        args += ["--", self.url, str(path)]

        logger.info(f"Initializing mirror of {self.url} at {path}")
        try:
            auth.run(args)
        except GitCommandError as e:
            logger.warning(f"Mirror clone failed, continuing without a mirror: {e}")
            clear_directory(path)

    def _refresh(self, path: Path, auth: GitAuth) -> None:
        logger.info(f"Updating mirror at {path}")
        try:
            current = auth.invoke(["config", "--get", "remote.origin.url"], cwd=path)
            if current.stdout.strip() != self.url:
                auth.run(["remote", "set-url", "origin", self.url], cwd=path)
            auth.run(["fetch", "--all", "--prune", "--prune-tags"], cwd=path)
        except GitCommandError as e:
            logger.warning(f"Mirror refresh failed, using stale mirror: {e}")
