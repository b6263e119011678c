"""Config command group."""

from __future__ import annotations

__all__ = ["config"]

from pathlib import Path

import click

from suite_sso.config import get_config_path

from ..helpers import load_config
from ..styling import style_dim, style_header


@click.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Display the effective configuration.

    Without a config file the built-in defaults are shown.
    """
    loaded = load_config(ctx)

    if as_json:
        click.echo(loaded.to_json())
        return

    config_path: Path = (ctx.obj or {}).get("config_path") or get_config_path()
    if not config_path.exists():
        click.echo(style_dim(f"No config at {config_path}, showing defaults."))

    click.echo(style_header("Suite"))
    click.echo(f"  apex_domain: {loaded.suite.apex_domain}")
    click.echo(f"  hub_url: {loaded.suite.canonical_hub_url}")
    click.echo(f"  local_hub_port: {loaded.suite.local_hub_port}")
    click.echo(f"  apps: {', '.join(sorted(loaded.suite.apps))}")
    click.echo()

    click.echo(style_header("Bootstrap"))
    click.echo(f"  timeout_seconds: {loaded.bootstrap.timeout_seconds}")
    click.echo(f"  http_timeout_seconds: {loaded.bootstrap.http_timeout_seconds}")
    click.echo(f"  bridge_enabled: {loaded.bootstrap.bridge_enabled}")
    click.echo(f"  monitor_enabled: {loaded.bootstrap.monitor_enabled}")
    click.echo(f"  revalidate_interval_seconds: {loaded.bootstrap.revalidate_interval_seconds}")
    click.echo(f"  session_check_interval_seconds: {loaded.bootstrap.session_check_interval_seconds}")
    click.echo(f"  cookie_secure: {loaded.bootstrap.cookie_secure}")
    click.echo()

    click.echo(style_header("Storage"))
    click.echo(f"  backend: {loaded.storage.backend}")
    click.echo(f"  path: {loaded.storage.path or '(default)'}")
    click.echo()

    click.echo(style_header("Logging"))
    click.echo(f"  log_dir: {loaded.logging.resolved_dir()}")
    click.echo(f"  log_level: {loaded.logging.log_level}")
    click.echo(f"  enabled: {loaded.logging.enabled}")


@config.command("path")
@click.pass_context
def config_path_cmd(ctx: click.Context) -> None:
    """Print the config file location."""
    path: Path = (ctx.obj or {}).get("config_path") or get_config_path()
    click.echo(str(path))
