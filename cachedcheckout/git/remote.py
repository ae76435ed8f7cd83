"""Remote URL handling and Go-style mirror cache keys."""

import re
from pathlib import Path
from urllib.parse import urlparse

REPOSITORY_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def is_local_path(url: str) -> bool:
    """
    Check if a repository is a local filesystem path rather than a remote URL.

    Local paths include ".", "..", absolute paths, and file:// URLs.

    Args:
        url: Repository URL or path

    Returns:
        True if this is a local filesystem path
    """
    url = url.strip()
    if url in (".", "..") or url.startswith("./") or url.startswith("../"):
        return True
    if url.startswith("/"):
        return True
    if url.startswith("file://"):
        return True
    return False


def is_url(repository: str) -> bool:
    return "://" in repository or re.match(r"^[^@/]+@[^:]+:", repository) is not None


def remote_url(repository: str, server_url: str, transport: str = "https") -> str:
    """
    Build the URL git should clone from.

    ``owner/name`` becomes ``<server_url>/owner/name.git`` (or the scp-like
    form ``git@host:owner/name.git`` over SSH). Full URLs, local paths and
    anything else that is not ``owner/name`` are returned unchanged.

    Args:
        repository: ``owner/name``, a URL or a local path
        server_url: Base URL of the git server, e.g. https://github.com
        transport: "https" or "ssh"

    Returns:
        URL suitable for ``git clone``
    """
    repository = repository.strip()
    if (
        is_url(repository)
        or is_local_path(repository)
        or not is_repository_name(repository)
    ):
        return repository

    name = repository[:-4] if repository.endswith(".git") else repository
    if transport == "ssh":
        host = urlparse(server_url).netloc or server_url
        return f"git@{host}:{name}.git"
    return f"{server_url.rstrip('/')}/{name}.git"


def parse_repo_url(url: str) -> str:
    """
    Parse a git repository URL into a Go-style cache path.

    Examples:
        https://github.com/user/repo.git -> github.com/user/repo
        git@github.com:user/repo.git -> github.com/user/repo
        https://gitlab.com/group/subgroup/project -> gitlab.com/group/subgroup/project
        file:///srv/git/repo.git -> local/srv/git/repo

    Args:
        url: Git repository URL

    Returns:
        Path-like string (e.g., "github.com/user/repo")
    """
    url = url.rstrip("/")
    if url.endswith(".git"):
        url = url[:-4]

    # Handle SSH URLs (git@host:path)
    ssh_match = re.match(r"^[^@/]+@([^:]+):(.+)$", url)
    if ssh_match:
        host, path = ssh_match.groups()
        return f"{host}/{path}"

    parsed = urlparse(url)
    if parsed.scheme == "file" or (not parsed.scheme and url.startswith("/")):
        return "local/" + (parsed.path or url).lstrip("/")

    if parsed.netloc and parsed.path:
        host = parsed.netloc.rsplit("@", 1)[-1]
        return f"{host}/{parsed.path.lstrip('/')}"

    # Fallback: treat as is
    return url.replace(":", "/").lstrip("./")


def mirror_key(url: str) -> str:
    """Cache key for the mirror of ``url``; never escapes the cache root."""
    parts = [p for p in Path(parse_repo_url(url)).parts if p not in ("", ".", "..", "/")]
    return "/".join(parts) or "default"


def is_repository_name(value: str) -> bool:
    return REPOSITORY_RE.match(value.strip()) is not None

