"""CLI command for checking out a repository through the mirror cache"""

import os
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError

from cachedcheckout.cache import LocalCacheMount
from cachedcheckout.cli.utils.logging import logger
from cachedcheckout.config import (
    get_git_timeout,
    get_lock_timeout,
    get_mirror_cache_dir,
    get_mirror_filter,
    get_server_url,
    is_cache_enabled,
)
from cachedcheckout.errors import CheckoutError
from cachedcheckout.git.auth import GitAuth, SshKeyAuth, TokenAuth
from cachedcheckout.model.inputs import CheckoutInputs
from cachedcheckout.model.state import CheckoutOutcome
from cachedcheckout.orchestrator import Orchestrator


def build_auth(
    token: Optional[str],
    ssh_key: Optional[Path],
    known_hosts: Optional[Path],
    strict_host_key_checking: bool,
    server_url: str,
) -> GitAuth:
    timeout = get_git_timeout()
    if ssh_key is not None:
        return SshKeyAuth(
            ssh_key,
            known_hosts=known_hosts,
            strict_host_key_checking=strict_host_key_checking,
            timeout=timeout,
        )
    if token:
        return TokenAuth(token, server_url, timeout=timeout)
    return GitAuth(timeout=timeout)


def write_outputs(outcome: CheckoutOutcome) -> None:
    """Print the outputs and append them to $GITHUB_OUTPUT when it is set."""
    lines = [f"{key}={value}" for key, value in outcome.as_outputs().items()]
    for line in lines:
        click.echo(line)

    output_file = os.environ.get("GITHUB_OUTPUT")
    if output_file:
        try:
            with open(output_file, "a") as f:
                f.write("\n".join(lines) + "\n")
        except OSError as e:
            logger.warning(f"Could not write outputs to {output_file}: {e}")


@click.command(name="checkout")
@click.argument("repository")
@click.option("--ref", default="", help="Branch, tag, PR ref or commit SHA. Defaults to the default branch.")
@click.option(
    "--fetch-depth",
    type=click.IntRange(min=0),
    default=1,
    show_default=True,
    help="Number of commits to fetch. 0 fetches the full history.",
)
@click.option("--path", default=".", show_default=True, help="Workspace directory, relative to the workspace root.")
@click.option(
    "--workspace-root",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="GITHUB_WORKSPACE",
    default=None,
    help="Root the workspace path is relative to. Defaults to $GITHUB_WORKSPACE or the current directory.",
)
@click.option("--refresh-cache", is_flag=True, default=False, help="Wipe and rebuild the cached mirror.")
@click.option("--cache/--no-cache", "use_cache", default=True, help="Use the mirror cache for this run.")
@click.option("--server-url", default=None, help="Git server base URL for owner/name repositories.")
@click.option("--token", envvar="CCO_TOKEN", default=None, help="Access token for HTTPS remotes.")
@click.option(
    "--ssh-key",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Private key for SSH remotes.",
)
@click.option(
    "--ssh-known-hosts",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="known_hosts file used with --ssh-key.",
)
@click.option(
    "--ssh-strict/--no-ssh-strict",
    default=True,
    help="Verify the SSH host key.",
)
def checkout(
    repository: str,
    ref: str,
    fetch_depth: int,
    path: str,
    workspace_root: Optional[Path],
    refresh_cache: bool,
    use_cache: bool,
    server_url: Optional[str],
    token: Optional[str],
    ssh_key: Optional[Path],
    ssh_known_hosts: Optional[Path],
    ssh_strict: bool,
):
    """Check out REPOSITORY into the workspace using the mirror cache.

    REPOSITORY is owner/name on the git server, a clone URL, or a local path.

    Example:

      cco checkout octo-org/octo-repo --ref refs/tags/v1.0.0 --fetch-depth 1
    """
    try:
        inputs = CheckoutInputs(
            repository=repository,
            ref=ref,
            fetch_depth=fetch_depth,
            path=path,
            refresh_cache=refresh_cache,
            use_cache=use_cache,
            workspace_root=workspace_root or Path.cwd(),
            server_url=server_url or get_server_url(),
        )
    except ValidationError as e:
        logger.error(f"Invalid input: {e}")
        sys.exit(1)

    auth = build_auth(token, ssh_key, ssh_known_hosts, ssh_strict, inputs.server_url)
    cache_mount = LocalCacheMount(get_mirror_cache_dir()) if is_cache_enabled() else None
    orchestrator = Orchestrator(
        auth,
        cache_mount=cache_mount,
        mirror_filter=get_mirror_filter(),
        lock_timeout=get_lock_timeout(),
    )

    try:
        outcome = orchestrator.run(inputs)
    except CheckoutError as e:
        logger.error(f"Checkout failed: {e}")
        sys.exit(1)

    write_outputs(outcome)
