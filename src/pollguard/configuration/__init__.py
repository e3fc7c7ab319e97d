"""
Configuration management for Pollguard.

- **app_configuration.py**: YAML loader for process-wide settings (guild
  configs directory, audit log icon, console log level).

- **guild_config.py**: Per-guild poll removal policy. Loads one YAML file per
  guild, validates it against Discord at startup and serves read-only lookups
  by guild ID afterwards.
"""
