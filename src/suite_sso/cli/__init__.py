"""Command-line interface for suite-sso.

Inspect the environment classification, run a bootstrap against a live
application, and manage local session state.
"""

from .main import cli, main

__all__ = ["cli", "main"]
