"""Init command: write the configuration file."""

from __future__ import annotations

__all__ = ["init"]

from pathlib import Path

import click

from suite_sso.config import (
    DEFAULT_LOG_DIR,
    AppConfig,
    BootstrapConfig,
    LoggingConfig,
    StorageConfig,
    SuiteConfig,
    get_config_path,
)
from suite_sso.constants import DEFAULT_APEX_DOMAIN, DEFAULT_BOOTSTRAP_TIMEOUT_SECONDS, DEFAULT_LOCAL_HUB_PORT

from ..styling import style_dim, style_header, style_success


@click.command()
@click.option("--apex-domain", default=DEFAULT_APEX_DOMAIN, show_default=True, help="Parent domain of the suite")
@click.option("--hub-url", default=None, help="Canonical Hub URL (default: https://www.<apex>)")
@click.option("--local-hub-port", type=int, default=DEFAULT_LOCAL_HUB_PORT, show_default=True)
@click.option(
    "--storage-backend",
    type=click.Choice(["auto", "keychain", "file", "memory"]),
    default="auto",
    show_default=True,
    help="Device storage for the session cache",
)
@click.option("--storage-path", default=None, help="Directory for the file backend")
@click.option("--timeout", type=float, default=DEFAULT_BOOTSTRAP_TIMEOUT_SECONDS, show_default=True)
@click.option("--no-bridge", is_flag=True, help="Disable the SSO bridge")
@click.option("--monitor", is_flag=True, help="Enable the session monitor (expiry, idle refresh, Hub revalidation)")
@click.option("--insecure-cookie", is_flag=True, help="Drop the Secure cookie attribute")
@click.option("--log-dir", default=DEFAULT_LOG_DIR, show_default=True)
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO"]), default="INFO", show_default=True)
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def init(
    ctx: click.Context,
    apex_domain: str,
    hub_url: str | None,
    local_hub_port: int,
    storage_backend: str,
    storage_path: str | None,
    timeout: float,
    no_bridge: bool,
    monitor: bool,
    insecure_cookie: bool,
    log_dir: str,
    log_level: str,
    force: bool,
) -> None:
    """Create the suite-sso configuration file."""
    config_path: Path = (ctx.obj or {}).get("config_path") or get_config_path()

    if config_path.exists() and not force:
        raise click.ClickException(f"Config already exists at {config_path}. Use --force to overwrite.")

    try:
        config = AppConfig(
            suite=SuiteConfig(apex_domain=apex_domain, hub_url=hub_url, local_hub_port=local_hub_port),
            bootstrap=BootstrapConfig(
                timeout_seconds=timeout,
                bridge_enabled=not no_bridge,
                monitor_enabled=monitor,
                cookie_secure=not insecure_cookie,
            ),
            storage=StorageConfig(backend=storage_backend, path=storage_path),  # type: ignore[arg-type]
            logging=LoggingConfig(log_dir=log_dir, log_level=log_level),  # type: ignore[arg-type]
        )
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    try:
        config.save_to_file(config_path)
    except OSError as e:
        raise click.ClickException(f"Failed to write {config_path}: {e}") from e

    click.echo(style_success(f"Configuration saved to {config_path}"))
    click.echo()
    click.echo(style_header("Suite"))
    click.echo(f"  apex_domain: {config.suite.apex_domain}")
    click.echo(f"  hub: {config.suite.canonical_hub_url}")
    click.echo(f"  local hub port: {config.suite.local_hub_port}")
    click.echo()
    click.echo(style_dim("Next: suite-sso env --origin http://localhost:3001"))
