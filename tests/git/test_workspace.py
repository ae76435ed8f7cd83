"""Tests for the per-run workspace clone."""

import shutil

import pytest

from cachedcheckout.errors import CheckoutError, Stage
from cachedcheckout.git.mirror import MirrorManager
from cachedcheckout.git.workspace import WorkspaceCloner, alternates_file
from cachedcheckout.model.state import MirrorState


def is_reference_clone(args):
    return args[0] == "clone" and any(a.startswith("--reference") for a in args)


@pytest.fixture
def mirror(upstream, auth, tmp_path) -> MirrorState:
    return MirrorManager(upstream.url).ensure(tmp_path / "mirror", False, auth)


@pytest.mark.integration
class TestClone:
    def test_without_mirror(self, upstream, recording_auth, tmp_path, head_of, run_git):
        workspace = tmp_path / "ws"

        result = WorkspaceCloner(upstream.url).clone(
            workspace, MirrorState.unavailable(), recording_auth, depth=1
        )

        assert not result.used_reference
        assert head_of(workspace) == upstream.main
        assert run_git("rev-parse", "--is-shallow-repository", cwd=workspace) == "true"
        assert not any(is_reference_clone(args) for args in recording_auth.calls)

    def test_with_mirror_is_dissociated(self, upstream, mirror, auth, tmp_path, run_git):
        workspace = tmp_path / "ws"

        result = WorkspaceCloner(upstream.url).clone(workspace, mirror, auth)

        assert result.used_reference
        assert result.dissociated
        assert not alternates_file(workspace).exists()

        # the workspace must survive the mirror disappearing
        shutil.rmtree(mirror.path)
        run_git("fsck", "--no-dangling", cwd=workspace)
        assert run_git("rev-parse", "HEAD", cwd=workspace) == upstream.main

    def test_full_history_by_default(self, upstream, mirror, auth, tmp_path, run_git):
        workspace = tmp_path / "ws"
        WorkspaceCloner(upstream.url).clone(workspace, mirror, auth, depth=0)

        assert run_git("rev-parse", "--is-shallow-repository", cwd=workspace) == "false"

    def test_existing_content_is_replaced(self, upstream, tmp_path, auth, head_of):
        workspace = tmp_path / "ws"
        workspace.mkdir()
        (workspace / "stale.txt").write_text("from a previous run")
        (workspace / ".hidden").mkdir()

        WorkspaceCloner(upstream.url).clone(workspace, MirrorState.unavailable(), auth)

        assert not (workspace / "stale.txt").exists()
        assert not (workspace / ".hidden").exists()
        assert head_of(workspace) == upstream.main


@pytest.mark.integration
class TestPartialMirror:
    @pytest.fixture
    def blobless_mirror(self, filtering_upstream, auth, tmp_path, run_git):
        state = MirrorManager(filtering_upstream.url).ensure(
            tmp_path / "mirror", False, auth
        )
        assert (
            run_git("config", "--get", "remote.origin.partialclonefilter", cwd=state.path)
            == "blob:none"
        )
        return state

    @pytest.mark.parametrize("depth", [0, 1])
    def test_reference_clone_succeeds(
        self,
        filtering_upstream,
        blobless_mirror,
        recording_auth,
        tmp_path,
        head_of,
        capture_logs,
        depth,
    ):
        workspace = tmp_path / "ws"

        result = WorkspaceCloner(filtering_upstream.url).clone(
            workspace, blobless_mirror, recording_auth, depth=depth
        )

        assert result.used_reference
        assert "falling back" not in capture_logs.getvalue()
        assert not alternates_file(workspace).exists()
        assert head_of(workspace) == filtering_upstream.main
        assert (workspace / "CHANGELOG.md").read_text() == "## 1.1.0\n"
        clones = [args for args in recording_auth.calls if is_reference_clone(args)]
        assert "--filter=blob:none" in clones[0]

    def test_full_mirror_adds_no_filter(self, upstream, recording_auth, tmp_path):
        mirror = MirrorManager(upstream.url, filter_spec=None).ensure(
            tmp_path / "mirror", False, recording_auth
        )

        WorkspaceCloner(upstream.url).clone(tmp_path / "ws", mirror, recording_auth)

        clones = [args for args in recording_auth.calls if is_reference_clone(args)]
        assert not any(a.startswith("--filter") for a in clones[0])


@pytest.mark.short
class TestWorkspaceDirectory:
    def test_uncreatable_workspace_is_a_clone_error(self, auth, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(CheckoutError) as exc_info:
            WorkspaceCloner("file:///unused").clone(
                blocker / "ws", MirrorState.unavailable(), auth
            )

        assert exc_info.value.stage is Stage.clone
        assert "Could not create workspace" in str(exc_info.value)


@pytest.mark.integration
class TestFallback:
    def test_reference_failure_falls_back(
        self, upstream, mirror, failing_auth, tmp_path, head_of, capture_logs
    ):
        auth = failing_auth(is_reference_clone)
        workspace = tmp_path / "ws"

        result = WorkspaceCloner(upstream.url).clone(workspace, mirror, auth, depth=1)

        assert not result.used_reference
        assert head_of(workspace) == upstream.main
        assert "falling back to standalone clone" in capture_logs.getvalue()

    def test_both_attempts_fail(self, mirror, auth, tmp_path):
        workspace = tmp_path / "ws"
        missing = (tmp_path / "missing").as_uri()

        with pytest.raises(CheckoutError) as exc_info:
            WorkspaceCloner(missing).clone(workspace, mirror, auth)

        assert exc_info.value.stage is Stage.clone
        assert exc_info.value.status is not None
        assert list(workspace.iterdir()) == []

    def test_vanished_object_store_skips_reference(
        self, upstream, mirror, recording_auth, tmp_path, head_of, capture_logs
    ):
        shutil.rmtree(mirror.path / "objects")
        workspace = tmp_path / "ws"

        result = WorkspaceCloner(upstream.url).clone(workspace, mirror, recording_auth)

        assert not result.used_reference
        assert head_of(workspace) == upstream.main
        assert not any(is_reference_clone(args) for args in recording_auth.calls)
        assert "falling back" not in capture_logs.getvalue()


@pytest.mark.integration
class TestDissociate:
    def test_leftover_alternates_are_removed(
        self, upstream, mirror, auth, tmp_path, run_git
    ):
        workspace = tmp_path / "ws"
        cloner = WorkspaceCloner(upstream.url)
        cloner.clone(workspace, mirror, auth)

        alternates = alternates_file(workspace)
        alternates.write_text(str(mirror.path / "objects") + "\n")

        cloner._ensure_dissociated(workspace, auth)

        assert not alternates.exists()
        run_git("fsck", "--no-dangling", cwd=workspace)
