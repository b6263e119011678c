"""Cache command group: inspect or clear the device session cache."""

from __future__ import annotations

__all__ = ["cache"]

import click

from ..helpers import make_device_cache, origin_option
from ..styling import style_dim, style_header, style_success


def _mask(value: str) -> str:
    if len(value) <= 12:
        return "*" * len(value)
    return f"{value[:6]}…{value[-4:]}"


@click.group()
def cache() -> None:
    """Device session cache (cross-port development sessions)."""
    pass


@cache.command("show")
@origin_option
@click.option("--reveal", is_flag=True, help="Print the full session value")
@click.pass_context
def cache_show(ctx: click.Context, origin: str, reveal: bool) -> None:
    """Show the cached session for an origin (expired entries are purged)."""
    device_cache, description = make_device_cache(ctx, origin)
    value = device_cache.read()

    click.echo(style_header("Device cache"))
    click.echo(f"  storage: {description}")
    if value is None:
        click.echo(style_dim("  No cached session."))
        return
    click.echo(f"  session: {value if reveal else _mask(value)}")


@cache.command("clear")
@origin_option
@click.pass_context
def cache_clear(ctx: click.Context, origin: str) -> None:
    """Remove the cached session for an origin."""
    device_cache, description = make_device_cache(ctx, origin)
    device_cache.clear()
    click.echo(style_success(f"Device cache cleared ({description})"))
