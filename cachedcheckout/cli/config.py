"""CLI commands for reading and writing the configuration file"""

import click

from cachedcheckout.config import config as settings
from cachedcheckout.config import default_cfg


@click.group(name="config")
def config():
    """Show or change the configuration."""
    pass


@config.command("show")
def show():
    """Print the effective configuration, defaults included."""
    click.echo(f"# {settings.config_path}")
    sections = list(default_cfg) + [s for s in settings.sections() if s not in default_cfg]
    for section in sections:
        click.echo(f"[{section}]")
        keys = list(default_cfg.get(section, {}))
        if settings.config.has_section(section):
            keys += [k for k in settings.config[section] if k not in keys]
        for key in keys:
            click.echo(f"{key} = {settings.get(section, key, '')}")
        click.echo("")


@config.command("set")
@click.argument("section")
@click.argument("key")
@click.argument("value")
def set_value(section, key, value):
    """Set SECTION.KEY to VALUE and save the configuration file.

    Example:

      cco config set cache lock_timeout 120
    """
    settings.set(section, key, value)
    settings.save()
