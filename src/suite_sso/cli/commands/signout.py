"""Signout command."""

from __future__ import annotations

__all__ = ["signout"]

import asyncio

import click

from suite_sso.runtime import SessionRuntime

from ..helpers import make_runtime, origin_option
from ..styling import style_success


async def _sign_out(runtime: SessionRuntime, global_: bool) -> None:
    async with runtime:
        await runtime.sign_out(global_=global_)


@click.command()
@origin_option
@click.option("--local", "local_only", is_flag=True, help="Only clear this application's session")
@click.pass_context
def signout(ctx: click.Context, origin: str, local_only: bool) -> None:
    """Sign out of the suite (or only of one application with --local)."""
    runtime = make_runtime(ctx, origin)
    asyncio.run(_sign_out(runtime, global_=not local_only))
    scope = "locally" if local_only else "from the suite"
    click.echo(style_success(f"Signed out {scope}"))
