"""Shared utilities for suite-sso (file helpers, logging setup)."""
