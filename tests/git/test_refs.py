"""Tests for ref classification and fetch planning."""

import pytest

from cachedcheckout.git.refs import (
    FETCH_HEAD,
    Branch,
    FetchPlan,
    PullRequest,
    RefKind,
    Sha,
    Tag,
    Unqualified,
    is_pull_request_ref,
    plan_fetch,
    resolve,
)

SHA = "a1b2c3d4e5f60718293a4b5c6d7e8f9012345678"


@pytest.mark.short
class TestResolve:
    """Test the classification rules in priority order."""

    def test_full_sha(self):
        assert resolve(SHA) == Sha(SHA)

    def test_sha_is_lowercased(self):
        assert resolve(SHA.upper()) == Sha(SHA)

    def test_short_sha_is_unqualified(self):
        assert resolve(SHA[:7]) == Unqualified(SHA[:7])

    def test_41_hex_chars_is_unqualified(self):
        assert resolve(SHA + "a") == Unqualified(SHA + "a")

    def test_branch(self):
        assert resolve("refs/heads/main") == Branch("main")

    def test_nested_branch(self):
        assert resolve("refs/heads/release/2.x") == Branch("release/2.x")

    def test_tag(self):
        assert resolve("refs/tags/v1.0.0") == Tag("v1.0.0")

    @pytest.mark.parametrize("ref", ["refs/pull/12/head", "refs/pull/12/merge"])
    def test_pull_request(self, ref):
        assert resolve(ref) == PullRequest(ref)

    def test_pull_namespace_without_head_or_merge(self):
        intent = resolve("refs/pull/12/other")
        assert intent == Unqualified("refs/pull/12/other")
        assert intent.fully_qualified

    def test_other_fully_qualified_ref(self):
        intent = resolve("refs/notes/commits")
        assert isinstance(intent, Unqualified)
        assert intent.fully_qualified

    def test_bare_name(self):
        intent = resolve("main")
        assert intent == Unqualified("main")
        assert not intent.fully_qualified

    def test_whitespace_is_stripped(self):
        assert resolve("  refs/tags/v1.0.0\n") == Tag("v1.0.0")

    def test_empty_ref_uses_default_branch(self):
        assert resolve("", default_branch="trunk") == Branch("trunk")

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_ref_without_default_branch(self, raw):
        assert resolve(raw) == Unqualified("")

    def test_bare_prefixes_do_not_produce_empty_names(self):
        assert resolve("refs/heads/") == Unqualified("refs/heads/")
        assert resolve("refs/tags/") == Unqualified("refs/tags/")

    @pytest.mark.parametrize(
        "raw",
        ["", "x", "refs/", "refs/heads", "HEAD", "\t", "~", "refs/pull/", "a" * 100],
    )
    def test_total(self, raw):
        intent = resolve(raw)
        assert intent.kind in set(RefKind)

    def test_kind_tags(self):
        assert Sha(SHA).kind is RefKind.sha
        assert Branch("main").kind is RefKind.branch
        assert Tag("v1").kind is RefKind.tag
        assert PullRequest("refs/pull/1/head").kind is RefKind.pull_request
        assert Unqualified("x").kind is RefKind.unqualified


@pytest.mark.short
class TestIsPullRequestRef:
    def test_head_and_merge(self):
        assert is_pull_request_ref("refs/pull/7/head")
        assert is_pull_request_ref("refs/pull/7/merge")

    def test_other_refs(self):
        assert not is_pull_request_ref("refs/heads/pull/7/head")
        assert not is_pull_request_ref("refs/pull/7")


@pytest.mark.short
class TestPlanFetch:
    """Test the fetch plan derived for each intent."""

    def test_sha_with_depth_enables_unshallow(self):
        plan = plan_fetch(Sha(SHA), depth=1)
        assert plan.refspec == SHA
        assert plan.depth == 1
        assert plan.checkout_target == SHA
        assert plan.unshallow_fallback

    def test_sha_full_history(self):
        plan = plan_fetch(Sha(SHA), depth=0)
        assert plan.depth is None
        assert not plan.unshallow_fallback

    def test_branch(self):
        plan = plan_fetch(Branch("feature/x"), depth=1)
        assert plan.refspec == "+refs/heads/feature/x:refs/remotes/origin/feature/x"
        assert plan.checkout_target == "origin/feature/x"
        assert not plan.no_tags

    def test_pull_request(self):
        plan = plan_fetch(PullRequest("refs/pull/5/merge"))
        assert plan.refspec == "+refs/pull/5/merge:refs/remotes/origin/pull/5/merge"
        assert plan.checkout_targets == (FETCH_HEAD,)

    def test_tag(self):
        plan = plan_fetch(Tag("v1.0.0"), depth=3)
        assert plan.refspec == "refs/tags/v1.0.0:refs/tags/v1.0.0"
        assert plan.no_tags
        assert plan.depth == 3
        assert plan.checkout_target == "refs/tags/v1.0.0"

    def test_unqualified(self):
        plan = plan_fetch(Unqualified("develop"))
        assert plan.refspec == "develop"
        assert plan.checkout_targets == ("develop", FETCH_HEAD)

    def test_empty_unqualified_fetches_nothing(self):
        plan = plan_fetch(Unqualified(""))
        assert plan.refspec is None
        assert plan.checkout_target is None

    def test_negative_depth_is_full_history(self):
        assert plan_fetch(Branch("main"), depth=-1).depth is None

    def test_unknown_intent(self):
        with pytest.raises(TypeError):
            plan_fetch("refs/heads/main")

    def test_plan_is_immutable(self):
        plan = plan_fetch(Branch("main"))
        assert isinstance(plan, FetchPlan)
        with pytest.raises(AttributeError):
            plan.refspec = "other"
