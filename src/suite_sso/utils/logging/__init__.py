"""Logging utilities.

- iso_formatter: JSONL formatting with ISO 8601 timestamps
- logger_setup: Factory for file-backed JSONL loggers

Import directly from submodules:
    from suite_sso.utils.logging.logger_setup import setup_jsonl_logger
"""

__all__: list[str] = []  # Direct submodule imports required (see docstring)
