"""CLI commands for mirror cache management"""

import click

from cachedcheckout.cache import LocalCacheMount
from cachedcheckout.cli.utils.logging import logger
from cachedcheckout.config import get_mirror_cache_dir
from cachedcheckout.errors import CacheMountError


@click.group(name="cache")
def cache():
    """Manage the mirror cache."""
    pass


@cache.command("describe")
def describe():
    """List the cached mirrors.

    Example:

      cco cache describe
    """
    mount = LocalCacheMount(get_mirror_cache_dir())
    mirrors = mount.describe()

    if not mirrors:
        logger.info(f"No cached mirrors in {mount.root}")
        return

    logger.info(f"Cache directory: {mount.root}")
    for mirror in mirrors:
        status = "usable" if mirror["usable"] else "broken"
        click.echo(f"{mirror['key']}\t{mirror['url']}\t{status}")


@cache.command("clear")
@click.argument("key", required=False)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
def clear(key, yes):
    """Remove one cached mirror, or the whole cache when KEY is omitted.

    KEY is the mirror path relative to the cache root, as printed by
    `cco cache describe` (e.g. github.com/owner/name).
    """
    mount = LocalCacheMount(get_mirror_cache_dir())
    target = key or str(mount.root)
    if not yes:
        click.confirm(f"Remove {target}?", abort=True)

    try:
        mount.clear(key)
    except CacheMountError as e:
        raise click.BadParameter(str(e), param_hint="KEY")
    logger.info(f"Removed {target}")
