"""
Classification of user supplied refs into checkout intents.

A raw ref string (whatever the user typed into the ``ref`` input) is turned
into exactly one ``RefIntent`` variant, and each variant maps to one
``FetchPlan``. Both functions are pure: they never touch git or the network.

Classification order:
    1. 40 hex characters            -> Sha
    2. refs/heads/<name>            -> Branch
    3. refs/pull/<n>/(head|merge)   -> PullRequest
    4. refs/tags/<name>             -> Tag
    5. any other refs/...           -> Unqualified (fully qualified, opaque)
    6. anything else                -> Unqualified
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, TypeAlias

SHA_RE = re.compile(r"^[0-9a-fA-F]{40}$")

HEADS_PREFIX = "refs/heads/"
TAGS_PREFIX = "refs/tags/"
PULL_PREFIX = "refs/pull/"
FETCH_HEAD = "FETCH_HEAD"
REMOTE = "origin"


class RefKind(str, Enum):
    sha = "sha"
    branch = "branch"
    tag = "tag"
    pull_request = "pull_request"
    unqualified = "unqualified"


@dataclass(frozen=True)
class Sha:
    hash: str
    kind: RefKind = field(default=RefKind.sha, init=False)


@dataclass(frozen=True)
class Branch:
    name: str
    kind: RefKind = field(default=RefKind.branch, init=False)

    @property
    def ref(self) -> str:
        return f"{HEADS_PREFIX}{self.name}"


@dataclass(frozen=True)
class Tag:
    name: str
    kind: RefKind = field(default=RefKind.tag, init=False)

    @property
    def ref(self) -> str:
        return f"{TAGS_PREFIX}{self.name}"


@dataclass(frozen=True)
class PullRequest:
    ref: str
    kind: RefKind = field(default=RefKind.pull_request, init=False)


@dataclass(frozen=True)
class Unqualified:
    token: str
    kind: RefKind = field(default=RefKind.unqualified, init=False)

    @property
    def fully_qualified(self) -> bool:
        return self.token.startswith("refs/")


RefIntent: TypeAlias = Sha | Branch | Tag | PullRequest | Unqualified


@dataclass(frozen=True)
class FetchPlan:
    """How to fetch and check out one intent.

    ``refspec`` is None when nothing has to be fetched (the workspace stays on
    the commit the clone landed on). ``checkout_targets`` are tried in order.
    """

    refspec: Optional[str]
    depth: Optional[int]
    checkout_targets: Tuple[str, ...]
    unshallow_fallback: bool = False
    no_tags: bool = False

    @property
    def checkout_target(self) -> Optional[str]:
        return self.checkout_targets[0] if self.checkout_targets else None


def is_pull_request_ref(ref: str) -> bool:
    return ref.startswith(PULL_PREFIX) and (
        ref.endswith("/head") or ref.endswith("/merge")
    )


def resolve(raw_ref: Optional[str], default_branch: Optional[str] = None) -> RefIntent:
    """
    Classify a raw ref string. Never raises.

    Args:
        raw_ref: Ref as supplied by the user; empty means the default branch
        default_branch: Branch the fresh clone landed on, if known

    Returns:
        The matching RefIntent variant
    """
    ref = (raw_ref or "").strip()

    if not ref:
        if default_branch:
            return Branch(default_branch)
        return Unqualified("")

    if SHA_RE.match(ref):
        return Sha(ref.lower())

    if ref.startswith(HEADS_PREFIX) and len(ref) > len(HEADS_PREFIX):
        return Branch(ref[len(HEADS_PREFIX) :])

    if is_pull_request_ref(ref):
        return PullRequest(ref)

    if ref.startswith(TAGS_PREFIX) and len(ref) > len(TAGS_PREFIX):
        return Tag(ref[len(TAGS_PREFIX) :])

    return Unqualified(ref)


def plan_fetch(intent: RefIntent, depth: int = 0) -> FetchPlan:
    """
    Compute the fetch refspec and checkout targets for an intent.

    Args:
        intent: Resolved ref intent
        depth: Number of commits to fetch; 0 means full history

    Returns:
        FetchPlan for the intent
    """
    fetch_depth = depth if depth > 0 else None

    match intent:
        case Sha(hash=sha):
            return FetchPlan(
                refspec=sha,
                depth=fetch_depth,
                checkout_targets=(sha,),
                unshallow_fallback=fetch_depth is not None,
            )
        case Branch(name=name):
            return FetchPlan(
                refspec=f"+{HEADS_PREFIX}{name}:refs/remotes/{REMOTE}/{name}",
                depth=fetch_depth,
                checkout_targets=(f"{REMOTE}/{name}",),
            )
        case PullRequest(ref=ref):
            suffix = ref[len("refs/") :]
            return FetchPlan(
                refspec=f"+{ref}:refs/remotes/{REMOTE}/{suffix}",
                depth=fetch_depth,
                checkout_targets=(FETCH_HEAD,),
            )
        case Tag():
            return FetchPlan(
                refspec=f"{intent.ref}:{intent.ref}",
                depth=fetch_depth,
                checkout_targets=(intent.ref,),
                no_tags=True,
            )
        case Unqualified(token=""):
            return FetchPlan(refspec=None, depth=fetch_depth, checkout_targets=())
        case Unqualified(token=token):
            return FetchPlan(
                refspec=token,
                depth=fetch_depth,
                checkout_targets=(token, FETCH_HEAD),
            )
    raise TypeError(f"Unknown ref intent: {intent!r}")
