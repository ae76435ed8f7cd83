"""
Fetch and checkout of the requested ref inside a freshly cloned workspace.

One handler per RefIntent variant. Each handler fetches what the FetchPlan
asks for and moves HEAD to the plan's checkout target; the executor then
reads back the ref name and commit that make up the CheckoutOutcome.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from git.exc import GitCommandError

from cachedcheckout.errors import CheckoutError, Stage
from cachedcheckout.git.auth import GitAuth
from cachedcheckout.git.fallback import attempt, stderr_text
from cachedcheckout.git.refs import (
    FETCH_HEAD,
    HEADS_PREFIX,
    REMOTE,
    TAGS_PREFIX,
    Branch,
    FetchPlan,
    PullRequest,
    RefIntent,
    Sha,
    Tag,
    Unqualified,
    plan_fetch,
)
from cachedcheckout.model.state import CheckoutOutcome

logger = logging.getLogger(__name__)


class CheckoutExecutor:
    def checkout(
        self, workspace: Path, intent: RefIntent, plan: FetchPlan, auth: GitAuth
    ) -> CheckoutOutcome:
        """
        Fetch and check out ``intent`` in ``workspace``.

        Args:
            workspace: Workspace produced by WorkspaceCloner
            intent: Resolved ref intent
            plan: FetchPlan computed for the intent
            auth: Authenticated git invocation

        Returns:
            CheckoutOutcome with the resolved ref name and full commit SHA

        Raises:
            CheckoutError: if no fetch or checkout candidate succeeds
        """
        effective = self._dispatch(workspace, intent, plan, auth)
        outcome = self._outcome(workspace, effective, auth)
        logger.info(f"Checked out {outcome.ref} at {outcome.commit}")
        return outcome

    def _dispatch(
        self, workspace: Path, intent: RefIntent, plan: FetchPlan, auth: GitAuth
    ) -> RefIntent:
        match intent:
            case Sha():
                self._checkout_sha(workspace, intent, plan, auth)
            case Branch():
                self._checkout_branch(workspace, intent, plan, auth)
            case Tag():
                self._checkout_tag(workspace, intent, plan, auth)
            case PullRequest():
                self._checkout_pull_request(workspace, intent, plan, auth)
            case Unqualified():
                return self._checkout_unqualified(workspace, intent, plan, auth)
        return intent

    # Handlers

    def _checkout_sha(
        self, workspace: Path, intent: Sha, plan: FetchPlan, auth: GitAuth
    ) -> None:
        if has_commit(workspace, intent.hash, auth):
            logger.debug(f"Commit {intent.hash} already present, skipping fetch")
        else:
            fetch = attempt(
                "shallow fetch" if plan.depth else "fetch",
                lambda: fetch_refspec(workspace, plan, auth),
            )
            message = f"Could not fetch commit {intent.hash}"
            if plan.unshallow_fallback:
                unshallow = attempt(
                    "unshallow fetch", lambda: fetch_full_history(workspace, auth)
                )
                fetch.or_else(unshallow).run(Stage.fetch, message)
            else:
                fetch.run(Stage.fetch, message)
        self._checkout_first(workspace, plan.checkout_targets, auth)

    def _checkout_branch(
        self, workspace: Path, intent: Branch, plan: FetchPlan, auth: GitAuth
    ) -> None:
        if current_branch(workspace, auth) == intent.name:
            logger.debug(f"Clone already on branch {intent.name}, nothing to fetch")
            return
        attempt("fetch", lambda: fetch_refspec(workspace, plan, auth)).run(
            Stage.fetch, f"Could not fetch branch {intent.name}"
        )
        run_checkout(
            workspace,
            ["-B", intent.name, f"{REMOTE}/{intent.name}"],
            auth,
            f"Could not check out branch {intent.name}",
        )

    def _checkout_tag(
        self, workspace: Path, intent: Tag, plan: FetchPlan, auth: GitAuth
    ) -> None:
        attempt("fetch", lambda: fetch_refspec(workspace, plan, auth)).run(
            Stage.fetch, f"Could not fetch tag {intent.name}"
        )
        self._checkout_first(workspace, plan.checkout_targets, auth)

    def _checkout_pull_request(
        self, workspace: Path, intent: PullRequest, plan: FetchPlan, auth: GitAuth
    ) -> None:
        attempt("fetch", lambda: fetch_refspec(workspace, plan, auth)).run(
            Stage.fetch, f"Could not fetch {intent.ref}"
        )
        self._checkout_first(workspace, plan.checkout_targets, auth)

    def _checkout_unqualified(
        self, workspace: Path, intent: Unqualified, plan: FetchPlan, auth: GitAuth
    ) -> RefIntent:
        if not intent.token:
            logger.debug("No ref requested, keeping the commit the clone landed on")
            return intent

        advertised = advertised_intent(workspace, intent.token, auth)
        if advertised is not None:
            logger.info(f"Remote advertises {intent.token} as a {advertised.kind.value}")
            refined = plan_fetch(advertised, plan.depth or 0)
            return self._dispatch(workspace, advertised, refined, auth)

        # Not a branch or tag on the remote: guess, the token may be a
        # local name, an abbreviated commit or a ref outside heads/tags.
        fetched = True
        try:
            fetch_refspec(workspace, plan, auth)
        except GitCommandError as e:
            fetched = False
            logger.warning(f"Fetching {intent.token} failed: {stderr_text(e) or e}")

        targets = [t for t in plan.checkout_targets if fetched or t != FETCH_HEAD]
        self._checkout_first(workspace, targets, auth)
        return intent

    # Helpers

    def _checkout_first(
        self, workspace: Path, targets: Sequence[str], auth: GitAuth
    ) -> str:
        """Check out the first target that resolves; fatal if none does."""
        last_error: Optional[GitCommandError] = None
        for target in targets:
            # FETCH_HEAD and tags always detach, a plain name may DWIM to a branch
            args = ["--detach", target] if _must_detach(target) else [target, "--"]
            try:
                auth.run(["checkout", "--quiet", "--force", *args], cwd=workspace)
                return target
            except GitCommandError as e:
                logger.debug(f"Checkout of {target} failed: {stderr_text(e)}")
                last_error = e

        raise CheckoutError(
            Stage.checkout,
            f"None of {', '.join(targets) or 'no targets'} could be checked out",
            status=last_error.status if last_error is not None else None,
            stderr=stderr_text(last_error) if last_error is not None else None,
        )

    def _outcome(
        self, workspace: Path, intent: RefIntent, auth: GitAuth
    ) -> CheckoutOutcome:
        try:
            commit = auth.run(["rev-parse", "HEAD"], cwd=workspace).strip()
        except GitCommandError as e:
            raise CheckoutError(
                Stage.checkout,
                "Could not read the checked out commit",
                status=e.status,
                stderr=stderr_text(e),
            ) from e

        if isinstance(intent, Tag):
            return CheckoutOutcome(ref=intent.name, commit=commit)
        branch = current_branch(workspace, auth)
        return CheckoutOutcome(ref=branch or commit, commit=commit)


def _must_detach(target: str) -> bool:
    return target == FETCH_HEAD or target.startswith(TAGS_PREFIX) or is_full_sha(target)


def is_full_sha(value: str) -> bool:
    return len(value) == 40 and all(c in "0123456789abcdefABCDEF" for c in value)


def current_branch(workspace: Path, auth: GitAuth) -> Optional[str]:
    """Short name of the checked out branch, None when HEAD is detached."""
    result = auth.invoke(["symbolic-ref", "--quiet", "--short", "HEAD"], cwd=workspace)
    if not result.ok:
        return None
    return result.stdout.strip() or None


def has_commit(workspace: Path, sha: str, auth: GitAuth) -> bool:
    return auth.invoke(["cat-file", "-e", f"{sha}^{{commit}}"], cwd=workspace).ok


def is_shallow(workspace: Path, auth: GitAuth) -> bool:
    result = auth.invoke(["rev-parse", "--is-shallow-repository"], cwd=workspace)
    return result.ok and result.stdout.strip() == "true"


def fetch_refspec(workspace: Path, plan: FetchPlan, auth: GitAuth) -> None:
    args = ["fetch", "--no-recurse-submodules"]
    if plan.no_tags:
        args.append("--no-tags")
    if plan.depth:
        args.append(f"--depth={plan.depth}")
    args += [REMOTE, plan.refspec or "HEAD"]
    auth.run(args, cwd=workspace)


def fetch_full_history(workspace: Path, auth: GitAuth) -> None:
    """Fetch every branch and tag with full history."""
    args = ["fetch", "--no-recurse-submodules", "--tags"]
    if is_shallow(workspace, auth):
        args.append("--unshallow")
    args += [REMOTE, f"+{HEADS_PREFIX}*:refs/remotes/{REMOTE}/*"]
    auth.run(args, cwd=workspace)


def run_checkout(
    workspace: Path, args: Sequence[str], auth: GitAuth, message: str
) -> None:
    try:
        auth.run(["checkout", "--quiet", "--force", *args], cwd=workspace)
    except GitCommandError as e:
        raise CheckoutError(
            Stage.checkout, message, status=e.status, stderr=stderr_text(e)
        ) from e


def advertised_intent(workspace: Path, token: str, auth: GitAuth) -> Optional[RefIntent]:
    """
    Ask the remote whether ``token`` names a branch or a tag.

    Returns:
        Branch or Tag when the remote advertises a matching ref, else None
    """
    if token.startswith("refs/"):
        return None
    result = auth.invoke(["ls-remote", REMOTE, token], cwd=workspace)
    if not result.ok:
        logger.debug(f"ls-remote for {token} failed: {result.stderr.strip()}")
        return None

    refs = {line.split("\t", 1)[1] for line in result.stdout.splitlines() if "\t" in line}
    if f"{HEADS_PREFIX}{token}" in refs:
        return Branch(token)
    if f"{TAGS_PREFIX}{token}" in refs:
        return Tag(token)
    return None
