"""
State records passed between the checkout stages.

All of them are immutable: a stage that learns something new returns a new
record instead of updating the one it was given.
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional


def has_object_store(path: Path) -> bool:
    """Check that ``path`` looks like a bare repository with an object store."""
    return (
        (path / "HEAD").is_file()
        and (path / "objects").is_dir()
        and (path / "refs").is_dir()
    )


def is_populated(path: Path) -> bool:
    try:
        return path.is_dir() and any(path.iterdir())
    except OSError:
        return False


@dataclass(frozen=True)
class MirrorState:
    """
    What the run knows about the cached mirror.

    Attributes:
        path: Mirror directory, None when caching is unavailable for the run
        exists: Directory is present and non-empty
        usable: Directory holds a valid object store
    """

    path: Optional[Path]
    exists: bool
    usable: bool

    @classmethod
    def unavailable(cls) -> "MirrorState":
        return cls(path=None, exists=False, usable=False)

    def revalidate(self) -> "MirrorState":
        """Re-probe the directory; a vanished object store makes the mirror unusable."""
        if self.path is None or not self.usable:
            return self
        if has_object_store(self.path):
            return self
        return replace(self, exists=is_populated(self.path), usable=False)


@dataclass(frozen=True)
class WorkspaceResult:
    """How the workspace clone was produced (diagnostics only)."""

    path: Path
    dissociated: bool
    used_reference: bool


@dataclass(frozen=True)
class CheckoutOutcome:
    """Resolved ref name and full commit SHA of the checked out workspace."""

    ref: str
    commit: str

    def as_outputs(self) -> dict[str, str]:
        return {"ref": self.ref, "commit": self.commit}
