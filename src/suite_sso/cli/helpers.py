"""Shared helpers for CLI commands."""

from __future__ import annotations

__all__ = [
    "load_config",
    "make_device_cache",
    "make_runtime",
    "origin_option",
    "parse_origin",
]

from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from suite_sso.config import AppConfig, get_config_path
from suite_sso.environment import Origin
from suite_sso.identity import CustomTokenSignIn
from suite_sso.runtime import SessionRuntime
from suite_sso.session.device_cache import DeviceSessionCache
from suite_sso.storage.device_storage import create_device_storage


def origin_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """``--origin URL`` option shared by commands that act on one application."""
    return click.option(
        "--origin",
        "-o",
        required=True,
        help="Application origin, e.g. http://localhost:3001",
    )(func)


def load_config(ctx: click.Context) -> AppConfig:
    """Load the config selected by the group's ``--config`` (defaults if absent).

    Raises:
        click.ClickException: If the file exists but is invalid.
    """
    config_path: Path | None = (ctx.obj or {}).get("config_path")
    try:
        return AppConfig.load_or_default(config_path or get_config_path())
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from e


def parse_origin(origin: str) -> Origin:
    try:
        return Origin.parse(origin)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--origin") from e


def make_runtime(ctx: click.Context, origin: str, **kwargs: Any) -> SessionRuntime:
    """Runtime for ``origin`` with the CLI's config and claim-based sign-in."""
    config = load_config(ctx)
    return SessionRuntime(parse_origin(origin).base_url, config, sign_in=CustomTokenSignIn(), **kwargs)


def make_device_cache(ctx: click.Context, origin: str) -> tuple[DeviceSessionCache, str]:
    """Device cache for ``origin`` plus a description of its storage backend."""
    config = load_config(ctx)
    storage = create_device_storage(config.storage, parse_origin(origin).base_url)
    return DeviceSessionCache(storage), storage.description
