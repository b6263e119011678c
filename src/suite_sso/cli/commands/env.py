"""Env command: classify an origin as Hub or Spoke."""

from __future__ import annotations

__all__ = ["env"]

import json

import click

from suite_sso.environment import EnvironmentResolver

from ..helpers import load_config, origin_option, parse_origin
from ..styling import style_header


@click.command()
@origin_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def env(ctx: click.Context, origin: str, as_json: bool) -> None:
    """Show how an origin is classified within the suite."""
    config = load_config(ctx)
    resolver = EnvironmentResolver(parse_origin(origin), config.suite)
    info = resolver.describe()

    if as_json:
        click.echo(json.dumps(info, indent=2))
        return

    click.echo(style_header("Environment"))
    click.echo(f"  origin: {info['origin']}")
    click.echo(f"  role: {'auth hub' if info['is_hub'] else 'spoke'}")
    click.echo(f"  host class: {info['host_class']}")
    click.echo(f"  app: {info['app'] or '(unknown)'}")
    click.echo(f"  hub url: {info['hub_url']}")
    click.echo(f"  cookie domain: {info['cookie_domain'] or '(host-only)'}")
    click.echo(f"  local development: {info['local_development']}")
