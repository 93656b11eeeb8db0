"""
Utility functions and helpers for Helpdesk.

This package provides reusable utilities:

- **logger.py**: Centralized logging configuration with colored console output,
  per-session log files, and suppression of noisy Discord internals. Uses
  prompt_toolkit so log lines do not garble interactive terminals.

- **discord_utils.py**: Small stateless helpers for Discord objects such as
  thread detection, guild id extraction and staff permission checks.

- **format_utils.py**: Text normalization helpers (title casing, blank-to-None,
  length-bounded truncation).
"""
