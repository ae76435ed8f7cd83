"""
Git operations for cachedcheckout.

Architecture:
    Two-tier layout:
    - Mirror layer: one bare mirror per repository in the cache directory,
      refreshed at the start of every run (mirror.py)
    - Workspace layer: an independent clone per run, borrowing objects from
      the mirror and dissociating before use (workspace.py)

    The requested ref is classified (refs.py) and checked out in the
    workspace (checkout.py). Every git call goes through a GitAuth (auth.py).
"""

from .auth import GitAuth, GitResult, SshKeyAuth, TokenAuth
from .checkout import CheckoutExecutor
from .mirror import MirrorManager
from .refs import (
    Branch,
    FetchPlan,
    PullRequest,
    RefIntent,
    RefKind,
    Sha,
    Tag,
    Unqualified,
    plan_fetch,
    resolve,
)
from .remote import is_local_path, mirror_key, parse_repo_url, remote_url
from .workspace import WorkspaceCloner

__all__ = [
    "GitAuth",
    "GitResult",
    "SshKeyAuth",
    "TokenAuth",
    "CheckoutExecutor",
    "MirrorManager",
    "WorkspaceCloner",
    "Branch",
    "FetchPlan",
    "PullRequest",
    "RefIntent",
    "RefKind",
    "Sha",
    "Tag",
    "Unqualified",
    "plan_fetch",
    "resolve",
    "is_local_path",
    "mirror_key",
    "parse_repo_url",
    "remote_url",
]
