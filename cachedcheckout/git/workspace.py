"""
Creation of the per-run workspace clone.

With a usable mirror the workspace is cloned with ``--reference-if-able`` and
``--dissociate``: objects are borrowed from the mirror during the clone and
copied in before git returns, so the workspace never depends on the mirror
afterwards. Without a mirror, or when that clone fails, the workspace is
cloned straight from the remote.
"""

import logging
from pathlib import Path

from cachedcheckout.errors import CheckoutError, Stage
from cachedcheckout.git.auth import GitAuth
from cachedcheckout.git.fallback import attempt
from cachedcheckout.git.refs import REMOTE
from cachedcheckout.model.state import MirrorState, WorkspaceResult
from cachedcheckout.utils import clear_directory

logger = logging.getLogger(__name__)

REFERENCE_CLONE = "reference clone"
STANDALONE_CLONE = "standalone clone"


def alternates_file(workspace: Path) -> Path:
    return workspace / ".git" / "objects" / "info" / "alternates"


class WorkspaceCloner:
    def __init__(self, url: str) -> None:
        self.url = url

    def clone(
        self, workspace: Path, mirror: MirrorState, auth: GitAuth, depth: int = 0
    ) -> WorkspaceResult:
        """
        Clone the remote into ``workspace``.

        Args:
            workspace: Target directory; any existing content is removed
            mirror: Mirror state from MirrorManager.ensure
            auth: Authenticated git invocation
            depth: Commits to fetch from the tip, 0 for full history

        Returns:
            WorkspaceResult describing which path was taken

        Raises:
            CheckoutError: if the workspace cannot be created or the standalone
                clone fails
        """
        try:
            workspace.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CheckoutError(
                Stage.clone, f"Could not create workspace {workspace}: {e}"
            ) from e
        if not clear_directory(workspace):
            logger.warning(f"Workspace {workspace} could not be emptied before cloning")

        standalone = attempt(
            STANDALONE_CLONE,
            lambda: self._standalone(workspace, auth, depth),
            cleanup=lambda: clear_directory(workspace),
        )

        message = f"Could not clone {self.url} into {workspace}"
        mirror = mirror.revalidate()
        if mirror.usable and mirror.path is not None:
            mirror_path = mirror.path
            reference = attempt(
                REFERENCE_CLONE,
                lambda: self._reference(workspace, mirror_path, auth, depth),
                cleanup=lambda: clear_directory(workspace),
            )
            outcome = reference.or_else(standalone).run(Stage.clone, message)
        else:
            outcome = standalone.run(Stage.clone, message)

        used_reference = outcome.label == REFERENCE_CLONE
        logger.info(
            f"Workspace ready at {workspace} "
            f"({'from mirror' if used_reference else 'from remote'})"
        )
        return WorkspaceResult(
            path=workspace, dissociated=used_reference, used_reference=used_reference
        )

    def _depth_args(self, depth: int) -> list[str]:
        return [f"--depth={depth}"] if depth > 0 else []

    def _reference(
        self, workspace: Path, mirror_path: Path, auth: GitAuth, depth: int
    ) -> None:
        args = [
            "clone",
            f"--reference-if-able={mirror_path}",
            "--dissociate",
            *self._depth_args(depth),
            *self._filter_args(mirror_path, auth),
            "--",
            self.url,
            str(workspace),
        ]
        logger.info(f"Cloning {self.url} using mirror at {mirror_path}")
        auth.run(args)
        self._ensure_dissociated(workspace, auth)

    def _filter_args(self, mirror_path: Path, auth: GitAuth) -> list[str]:
        """
        Repeat the mirror's partial clone filter on the workspace clone.

        The server skips objects the alternate claims to have, so a workspace
        borrowing from a partial mirror has to be a partial clone too.
        """
        result = auth.invoke(
            ["config", "--get", f"remote.{REMOTE}.partialclonefilter"], cwd=mirror_path
        )
        filter_spec = result.stdout.strip() if result.ok else ""
        return [f"--filter={filter_spec}"] if filter_spec else []

    def _standalone(self, workspace: Path, auth: GitAuth, depth: int) -> None:
        args = ["clone", *self._depth_args(depth), "--", self.url, str(workspace)]
        logger.info(f"Cloning {self.url}")
        auth.run(args)

    def _ensure_dissociated(self, workspace: Path, auth: GitAuth) -> None:
        """Copy borrowed objects in and drop the alternates link if it survived the clone."""
        alternates = alternates_file(workspace)
        if not alternates.exists():
            return
        logger.warning(f"{alternates} still present after clone, repacking")
        auth.run(["repack", "-a", "-d", "-q"], cwd=workspace)
        alternates.unlink()
