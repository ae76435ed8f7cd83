import io
import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

import pytest

from cachedcheckout.git.auth import GitAuth, GitResult


def pytest_collection_modifyitems(config, items):
    if shutil.which("git") is not None:
        return
    skip_git = pytest.mark.skip(reason="git executable not available")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_git)


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("cachedcheckout")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream  # Yield the stream to the test function

    # Cleanup after the test
    logger.removeHandler(handler)
    log_stream.close()


# git fixtures


@pytest.fixture(autouse=True)
def isolated_git(monkeypatch, tmp_path_factory):
    """Keep the user's git configuration out of the tests."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test Author")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test Author")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "author@example.com")
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)


@pytest.fixture
def run_git():
    """Run a git command for test setup and return its stripped stdout."""

    def _run(*args, cwd=None) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    return _run


@dataclass
class Upstream:
    """Commits and refs of the throwaway upstream repository."""

    path: Path
    url: str
    main: str
    tagged: str
    feature: str
    pull: str


@pytest.fixture
def upstream(tmp_path, run_git) -> Upstream:
    """
    Upstream repository served over file://.

    History:
        main:            tagged -- main
        feature:         tagged -- feature
        refs/pull/1/head tagged -- main -- pull
        refs/tags/v1.0.0 (annotated) -> tagged
    """
    path = tmp_path / "upstream"
    path.mkdir()
    run_git("init", "--quiet", "--initial-branch=main", cwd=path)
    run_git("config", "uploadpack.allowAnySHA1InWant", "true", cwd=path)

    def commit(filename: str, content: str) -> str:
        (path / filename).write_text(content)
        run_git("add", filename, cwd=path)
        run_git("commit", "--quiet", "-m", f"Add {filename}", cwd=path)
        return run_git("rev-parse", "HEAD", cwd=path)

    tagged = commit("README.md", "# upstream\n")
    run_git("tag", "-a", "v1.0.0", "-m", "Release 1.0.0", cwd=path)

    run_git("checkout", "--quiet", "-b", "feature", cwd=path)
    feature = commit("feature.txt", "feature\n")

    run_git("checkout", "--quiet", "main", cwd=path)
    main = commit("CHANGELOG.md", "## 1.1.0\n")

    run_git("checkout", "--quiet", "-b", "pr-1", cwd=path)
    pull = commit("fix.txt", "fix\n")
    run_git("update-ref", "refs/pull/1/head", pull, cwd=path)
    run_git("checkout", "--quiet", "main", cwd=path)
    run_git("branch", "--quiet", "-D", "pr-1", cwd=path)

    return Upstream(
        path=path,
        url=path.as_uri(),
        main=main,
        tagged=tagged,
        feature=feature,
        pull=pull,
    )


@pytest.fixture
def filtering_upstream(upstream, run_git) -> Upstream:
    """Upstream that honours partial clone filters, so mirrors come out blobless."""
    run_git("config", "uploadpack.allowFilter", "true", cwd=upstream.path)
    return upstream


@pytest.fixture
def auth() -> GitAuth:
    return GitAuth()


@pytest.fixture
def head_of(run_git):
    """Commit checked out in a workspace."""

    def _head(workspace: Path) -> str:
        return run_git("rev-parse", "HEAD", cwd=workspace)

    return _head


class RecordingAuth(GitAuth):
    """GitAuth that remembers the arguments of every git command it runs."""

    def __init__(self, fail=None):
        super().__init__()
        self.calls = []
        # predicate on the argument list; matching commands fail without running
        self.fail = fail

    def invoke(self, args, cwd=None):
        self.calls.append(list(args))
        if self.fail is not None and self.fail(list(args)):
            return GitResult(
                status=128,
                stdout="",
                stderr="fatal: rejected by test",
            )
        return super().invoke(args, cwd=cwd)


@pytest.fixture
def recording_auth() -> RecordingAuth:
    return RecordingAuth()


@pytest.fixture
def failing_auth():
    """RecordingAuth whose matching commands fail."""

    def _make(fail) -> RecordingAuth:
        return RecordingAuth(fail=fail)

    return _make
