"""
Configuration management for Mutecord.

- **app_configuration.py**: YAML configuration loader guarded by an fcntl file
  lock. Falls back to defaults on a missing or malformed file and validates the
  values the bot cannot start without.

- **bot_settings.py**: Typed views over the ``announcements``,
  ``spam_prevention`` and ``messages`` sections, the built-in template pools,
  and ``ConfigurationError``.
"""
