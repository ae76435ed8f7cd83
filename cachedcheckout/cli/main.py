"""cachedcheckout CLI"""

import click

from cachedcheckout import __version__
from cachedcheckout.cli.cache import cache
from cachedcheckout.cli.checkout import checkout
from cachedcheckout.cli.config import config
from cachedcheckout.cli.utils.logging import configure_logging


def _set_debug(ctx, param, value: bool):
    """Callback for the debug flag"""
    root_ctx = ctx.find_root()
    root_ctx.ensure_object(dict)
    # --debug at any level wins
    root_ctx.obj["DEBUG"] = root_ctx.obj.get("DEBUG", False) or value
    configure_logging(root_ctx.obj["DEBUG"])


def debug_option(cmd):
    """Decorator adding --debug/--no-debug to a command or group"""
    return click.option(
        "--debug/--no-debug",
        default=False,
        is_eager=True,
        expose_value=False,
        callback=_set_debug,
        help="Enable debug mode",
    )(cmd)


@click.group()
@click.version_option(__version__, prog_name="cachedcheckout")
@debug_option
@click.pass_context
def cli(ctx):
    """
    Cached git checkout for CI runners.
    """
    ctx.ensure_object(dict)


cli.add_command(debug_option(checkout))
cli.add_command(cache)
cli.add_command(config)

if __name__ == "__main__":
    cli(obj={})
