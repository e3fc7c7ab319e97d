"""
Per-guild poll removal policy.

Each guild opts in with a YAML file named ``<guild_id>.yml`` (or ``.yaml``)
in the guild configs directory::

    logging_channel: "123456789012345678"
    excluded_roles:
      - "234567890123456789"

All files are validated against Discord once at startup by
:meth:`GuildConfigStore.mount`. Any defect aborts the whole mount: the bot
never runs with a guild half-configured.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable

import discord
import yaml

from pollguard.util import discord_utils
from pollguard.util.logger import get_logger

logger = get_logger("guild_config")

CONFIG_EXTENSIONS = (".yml", ".yaml")
EXAMPLE_PREFIX = "example"


class ConfigurationError(Exception):
    """Raised when guild configuration cannot be mounted."""

    def __init__(self, guild_id: int | str | None, reason: str) -> None:
        self.guild_id = guild_id
        self.reason = reason
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.guild_id is None:
            return self.reason
        return f"[GUILD: {self.guild_id}] Failed to mount config file, {self.reason}"


@dataclass(frozen=True, slots=True)
class GuildPolicy:
    """Validated poll removal policy for one guild."""

    guild_id: int
    guild: discord.Guild
    log_destination: Any
    excluded_roles: frozenset[int] = frozenset()


def find_config_files(config_dir: Path) -> list[Path]:
    """Return the eligible guild config files in ``config_dir``, sorted by name."""
    if not config_dir.is_dir():
        return []
    return sorted(
        path
        for path in config_dir.iterdir()
        if path.is_file()
        and path.suffix.lower() in CONFIG_EXTENSIONS
        and not path.name.startswith(EXAMPLE_PREFIX)
    )


def _parse_id(value: Any, guild_id: int, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(guild_id, f"{field_name} contains an invalid ID: {value!r}")
    try:
        return int(str(value).strip())
    except ValueError:
        raise ConfigurationError(guild_id, f"{field_name} contains an invalid ID: {value!r}") from None


def parse_raw_config(guild_id: int, content: str) -> tuple[int, frozenset[int]]:
    """Validate the raw YAML of a guild config file.

    Returns
    -------
    tuple[int, frozenset[int]]
        The logging channel ID and the excluded role IDs.

    Raises
    ------
    ConfigurationError
        If the content is not a mapping or a field is missing or malformed.
    """
    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError:
        raise ConfigurationError(guild_id, "invalid YAML content") from None

    if not isinstance(raw, dict):
        raise ConfigurationError(guild_id, "invalid YAML content")

    if not raw.get("logging_channel"):
        raise ConfigurationError(guild_id, "missing logging_channel field")
    logging_channel = _parse_id(raw["logging_channel"], guild_id, "logging_channel")

    excluded_roles: Iterable[Any] = ()
    if "excluded_roles" in raw:
        excluded_roles = raw["excluded_roles"]
        if excluded_roles is None or (isinstance(excluded_roles, list) and not excluded_roles):
            raise ConfigurationError(guild_id, "excluded_roles is specified but is empty")
        if not isinstance(excluded_roles, list):
            raise ConfigurationError(guild_id, "excluded_roles must be a list of role IDs")

    roles = frozenset(_parse_id(role, guild_id, "excluded_roles") for role in excluded_roles)
    return logging_channel, roles


class GuildConfigStore:
    """Write-once, read-many mapping of guild ID to :class:`GuildPolicy`.

    The store is filled by :meth:`mount` before the bot connects to the
    gateway and is never modified afterwards.
    """

    def __init__(self, config_dir: Path) -> None:
        self.config_dir = Path(config_dir)
        self._policies: Dict[int, GuildPolicy] = {}
        self._mounted = False

    @property
    def mounted(self) -> bool:
        return self._mounted

    def __len__(self) -> int:
        return len(self._policies)

    def get(self, guild_id: int) -> GuildPolicy | None:
        """Return the policy for ``guild_id`` or ``None`` if the guild has none."""
        return self._policies.get(guild_id)

    async def mount(self, bot: discord.Bot) -> None:
        """Load and validate every guild config file against Discord.

        Parameters
        ----------
        bot:
            A logged-in bot; guilds, channels and the bot member are fetched over REST.

        Raises
        ------
        ConfigurationError
            On the first invalid file, or when no config file exists at all.
        """
        if self._mounted:
            raise RuntimeError("guild configuration is already mounted")

        files = find_config_files(self.config_dir)
        if not files:
            raise ConfigurationError(None, f"No config files found in the `{self.config_dir}` directory")

        policies: Dict[int, GuildPolicy] = {}
        for path in files:
            policy = await self._load_policy(bot, path)
            policies[policy.guild_id] = policy
            channel_label = getattr(policy.log_destination, "name", policy.log_destination.id)
            logger.info(
                f"[GUILD: {policy.guild_id}] Mounted config, logging to #{channel_label} "
                f"with {len(policy.excluded_roles)} excluded role(s)"
            )

        self._policies = policies
        self._mounted = True
        logger.info(f"Mounted {len(policies)} guild config(s) from {self.config_dir}")

    async def _load_policy(self, bot: discord.Bot, path: Path) -> GuildPolicy:
        # File name format: GUILD_ID.yml or GUILD_ID.yaml
        raw_guild_id = path.name.split(".")[0]
        if not raw_guild_id.isdigit():
            raise ConfigurationError(raw_guild_id, "file name is not a guild ID")
        guild_id = int(raw_guild_id)

        try:
            guild = await bot.fetch_guild(guild_id)
        except discord.HTTPException:
            raise ConfigurationError(guild_id, "guild not found") from None

        logging_channel_id, excluded_roles = parse_raw_config(guild_id, path.read_text(encoding="utf-8"))

        try:
            channel = await guild.fetch_channel(logging_channel_id)
        except (discord.HTTPException, discord.InvalidData):
            raise ConfigurationError(guild_id, f"logging channel with ID {logging_channel_id} not found") from None

        if not discord_utils.is_text_channel(channel):
            raise ConfigurationError(guild_id, f"logging channel with ID {logging_channel_id} is not a text channel")

        try:
            me = await guild.fetch_member(bot.user.id)
        except discord.HTTPException:
            raise ConfigurationError(guild_id, "the bot is not a member of this guild") from None

        missing = discord_utils.missing_permissions(channel, me)
        if missing:
            raise ConfigurationError(guild_id, f"missing permissions in logging channel: {', '.join(missing)}")

        return GuildPolicy(
            guild_id=guild_id,
            guild=guild,
            log_destination=channel,
            excluded_roles=excluded_roles,
        )
