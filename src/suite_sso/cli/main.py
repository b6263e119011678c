"""Main CLI entry point for suite-sso.

Commands:
    bootstrap - Recover the suite session for an origin
    cache     - Device session cache (show, clear)
    config    - Configuration (show, path)
    env       - Hub/Spoke classification of an origin
    init      - Create the configuration file
    signout   - Sign out globally or locally

Subcommand help:
    suite-sso COMMAND -h
"""

from __future__ import annotations

__all__ = ["cli"]

import sys
from pathlib import Path

import click

from suite_sso import __version__

from .commands.bootstrap import bootstrap
from .commands.cache import cache
from .commands.config import config
from .commands.env import env
from .commands.init import init
from .commands.signout import signout


class ReorderedGroup(click.Group):
    """Group that appends a quick-start epilog after the command list."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        formatter.write(
            """
Quick Start:
  suite-sso init --apex-domain example.com
  suite-sso env --origin http://localhost:3001
  suite-sso bootstrap --origin http://localhost:3001

Local development:
  The Hub runs on port 3000, Spokes on their own ports. Sessions reach
  Spokes through the device cache, see 'suite-sso cache show'.
"""
        )


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: OS config dir)",
)
@click.pass_context
def cli(ctx: click.Context, version: bool, config_path: Path | None) -> None:
    """suite-sso: cross-application session bootstrap."""
    if version:
        click.echo(f"suite-sso {__version__}")
        sys.exit(0)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(bootstrap)
cli.add_command(cache)
cli.add_command(config)
cli.add_command(env)
cli.add_command(init)
cli.add_command(signout)


def main() -> None:
    """CLI entry point."""
    cli()
