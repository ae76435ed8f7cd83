"""
Mirror cache storage.

The engine only needs "a directory that may already hold a mirror", which
it gets from a ``CacheMount``. ``LocalCacheMount`` keeps one directory per
repository under a cache root, laid out like the Go build cache:

    ~/.cache/cachedcheckout/mirrors/
    ├── github.com/
    │   └── owner/
    │       ├── name/          # bare mirror
    │       └── name.lock      # held while a run refreshes the mirror
    └── local/
        └── srv/git/project/
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol

from git import Repo
from git.exc import InvalidGitRepositoryError, NoSuchPathError

from cachedcheckout.errors import CacheMountError
from cachedcheckout.model.state import has_object_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Mount:
    path: Path
    hit: bool


class CacheMount(Protocol):
    """Supplies the mirror directory for a cache key."""

    def mount(self, key: str) -> Mount:
        """Return the directory for ``key``; raise CacheMountError if unavailable."""
        ...


class LocalCacheMount:
    """Mirror directories on the local filesystem."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        root = self.root.resolve()
        if path == root or root not in path.parents:
            raise CacheMountError(f"Cache key {key!r} escapes the cache root {root}")
        return path

    def mount(self, key: str) -> Mount:
        path = self.path_for(key)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheMountError(f"Could not create mirror directory {path}: {e}") from e
        hit = has_object_store(path)
        logger.debug(f"Cache {'hit' if hit else 'miss'} for {key} at {path}")
        return Mount(path=path, hit=hit)

    def describe(self) -> List[dict]:
        """
        Describe the cached mirrors.

        Returns:
            List of dictionaries with:
            - key: Cache key (e.g. "github.com/owner/name")
            - path: Mirror directory
            - url: Remote URL of the mirror, or "unknown"
            - usable: Whether the directory holds a valid object store
        """
        if not self.root.exists():
            return []

        results = []
        for head in sorted(self.root.rglob("HEAD")):
            mirror_path = head.parent
            if not has_object_store(mirror_path):
                continue
            # Skip refs/.../HEAD and similar files inside a mirror
            if any(has_object_store(p) for p in mirror_path.parents if self.root in p.parents):
                continue

            url = "unknown"
            usable = True
            try:
                repo = Repo(str(mirror_path))
                if repo.remotes:
                    url = repo.remotes[0].url
            except (InvalidGitRepositoryError, NoSuchPathError) as e:
                logger.debug(f"Failed to read mirror at {mirror_path}: {e}")
                usable = False

            results.append(
                {
                    "key": str(mirror_path.relative_to(self.root)),
                    "path": str(mirror_path),
                    "url": url,
                    "usable": usable,
                }
            )
        return results

    def clear(self, key: Optional[str] = None) -> None:
        """Remove one mirror (and its lock file), or the whole cache root."""
        if key is None:
            logger.info(f"Removing mirror cache at {self.root}")
            shutil.rmtree(self.root, ignore_errors=True)
            return

        path = self.path_for(key)
        logger.info(f"Removing mirror {key} at {path}")
        shutil.rmtree(path, ignore_errors=True)
        path.with_name(path.name + ".lock").unlink(missing_ok=True)
