"""
Sequencing of one checkout run.

    cache mount -> MirrorManager.ensure -> WorkspaceCloner.clone
        -> resolve/plan_fetch -> CheckoutExecutor.checkout

The orchestrator holds no checkout logic of its own. Mirror problems only
change how fast the run is; the first CheckoutError from cloning or checkout
ends the run.
"""

import logging
from typing import Optional

from cachedcheckout.cache import CacheMount
from cachedcheckout.errors import CacheMountError
from cachedcheckout.git.auth import GitAuth
from cachedcheckout.git.checkout import CheckoutExecutor, current_branch
from cachedcheckout.git.mirror import MirrorManager
from cachedcheckout.git.refs import plan_fetch, resolve
from cachedcheckout.git.workspace import WorkspaceCloner
from cachedcheckout.model.inputs import CheckoutInputs
from cachedcheckout.model.state import CheckoutOutcome, MirrorState

logger = logging.getLogger(__name__)


class Orchestrator:
    def __init__(
        self,
        auth: GitAuth,
        cache_mount: Optional[CacheMount] = None,
        mirror_filter: Optional[str] = "blob:none",
        lock_timeout: float = 600.0,
    ) -> None:
        """
        Args:
            auth: Authenticated git invocation used for every git command
            cache_mount: Source of the mirror directory, None disables caching
            mirror_filter: Partial clone filter for new mirrors
            lock_timeout: Seconds to wait for the mirror lock
        """
        self.auth = auth
        self.cache_mount = cache_mount
        self.mirror_filter = mirror_filter
        self.lock_timeout = lock_timeout

    def run(self, inputs: CheckoutInputs) -> CheckoutOutcome:
        url = inputs.remote_url(self.auth.transport)
        workspace = inputs.workspace_path

        mirror = self.prepare_mirror(inputs, url)
        WorkspaceCloner(url).clone(workspace, mirror, self.auth, inputs.fetch_depth)

        intent = resolve(inputs.ref, default_branch=current_branch(workspace, self.auth))
        plan = plan_fetch(intent, inputs.fetch_depth)
        logger.debug(f"Resolved {inputs.ref or '(default branch)'} to {intent}")

        return CheckoutExecutor().checkout(workspace, intent, plan, self.auth)

    def prepare_mirror(self, inputs: CheckoutInputs, url: str) -> MirrorState:
        """Mount and refresh the mirror, or report it unavailable for this run."""
        if not inputs.use_cache or self.cache_mount is None:
            logger.info("Mirror cache not available for this run")
            return MirrorState.unavailable()

        try:
            mount = self.cache_mount.mount(inputs.mirror_key(self.auth.transport))
        except CacheMountError as e:
            logger.warning(f"Mirror cache could not be mounted: {e}")
            return MirrorState.unavailable()

        manager = MirrorManager(
            url, filter_spec=self.mirror_filter, lock_timeout=self.lock_timeout
        )
        mirror = manager.ensure(mount.path, inputs.refresh_cache, self.auth)
        if not mirror.usable:
            logger.warning(f"Mirror at {mount.path} is not usable, cloning from the remote")
        return mirror
