"""
Utility functions and helpers for Mutecord.

This package provides reusable utilities:

- **logger.py**: Centralized logging configuration with colored console output,
  rotating file handlers, and per-session log aggregation. Suppresses noise from
  Discord internals. Uses prompt_toolkit for non-blocking console I/O.

- **discord_utils.py**: Stateless Discord helpers such as the permission check
  used to decide whether the bot may post announcements in a channel.

- **retry.py**: Bounded exponential-backoff retry used around message delivery.
"""
