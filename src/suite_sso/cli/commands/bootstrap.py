"""Bootstrap command: run the load sequence against a live application."""

from __future__ import annotations

__all__ = ["bootstrap"]

import asyncio
import json
from typing import Any

import click

from suite_sso.bridge import BridgeOutcome
from suite_sso.runtime import SessionRuntime

from ..helpers import make_runtime, origin_option
from ..styling import style_dim, style_header, style_label, style_success


async def _run(runtime: SessionRuntime) -> dict[str, Any]:
    async with runtime:
        snapshot = await runtime.init()
        return {
            "origin": runtime.resolver.origin.base_url,
            "is_hub": runtime.is_hub,
            "status": runtime.coordinator.status.value,
            "authenticated": snapshot.authenticated,
            "hydrated_via": snapshot.hydrated_via,
            "user": snapshot.user.to_wire() if snapshot.user else None,
        }


@click.command()
@origin_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def bootstrap(ctx: click.Context, origin: str, as_json: bool) -> None:
    """Recover the suite session for an application origin.

    Runs the same sequence an application runs on load: bootstrap request,
    then the SSO bridge on Spokes when nothing was found.
    """
    outcomes: list[BridgeOutcome] = []
    runtime = make_runtime(ctx, origin, on_bridge_complete=outcomes.append)
    result = asyncio.run(_run(runtime))
    result["bridge"] = outcomes[0].result if outcomes else None

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    click.echo(style_header("Bootstrap"))
    click.echo(f"  origin: {result['origin']} ({'auth hub' if result['is_hub'] else 'spoke'})")
    click.echo(f"  status: {result['status']}")
    if result["bridge"]:
        click.echo(f"  sso bridge: {result['bridge']}")

    if not result["authenticated"]:
        click.echo(style_dim("  No suite session found."))
        return

    user = result["user"] or {}
    click.echo(style_success(f"Authenticated via {result['hydrated_via']}"))
    click.echo(f"  {style_label('uid')} {user.get('uid')}")
    if user.get("email"):
        click.echo(f"  {style_label('email')} {user['email']}")
    if user.get("displayName"):
        click.echo(f"  {style_label('name')} {user['displayName']}")
