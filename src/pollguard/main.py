"""
Discord Poll Removal Bot
========================

Removes native polls posted in configured guilds and logs every removal to
the guild's logging channel. Guild policy is read from ``configs/<guild_id>.yml``
and validated against Discord before the bot connects to the gateway.
"""

import os
import sys
from pathlib import Path

def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. POLLGUARD_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("POLLGUARD_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from pollguard.bot.cogs import events_listener
from pollguard.configuration.app_configuration import app_config
from pollguard.configuration.guild_config import ConfigurationError, GuildConfigStore
from pollguard.moderation.poll_router import PollRouter
from pollguard.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Returns
    -------
    str
        Discord bot token extracted from the loaded environment.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_TOKEN")
    if not token:
        logger.critical("Missing DISCORD_TOKEN environment variable")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Construct the Discord intents needed to see polls in guild messages."""
    intents = discord.Intents.none()
    intents.guilds = True
    intents.guild_messages = True
    intents.message_content = True
    return intents


def create_bot(store: GuildConfigStore) -> discord.Bot:
    """Instantiate the Discord bot and register the poll listener.

    ``enable_debug_events`` makes the client dispatch ``on_socket_raw_receive``,
    which carries the poll payloads.
    """
    bot = discord.Bot(intents=build_intents(), enable_debug_events=True)
    events_listener.setup(bot, PollRouter(bot, store))
    return bot


async def mount_guild_configs(bot: discord.Bot, store: GuildConfigStore) -> bool:
    """Mount every guild config, logging the defect on failure.

    Returns
    -------
    bool
        True if all guild configs were mounted.
    """
    try:
        await store.mount(bot)
    except ConfigurationError as exc:
        logger.critical(str(exc))
        return False
    return True


async def async_main() -> int:
    """Log in, mount guild configuration, then listen for polls.

    Returns
    -------
    int
        Process exit code: 0 on normal shutdown, 1 on any startup failure.
    """
    token = load_environment()

    store = GuildConfigStore(app_config.guild_configs_dir)
    bot = create_bot(store)

    try:
        logger.info("Logging in to Discord…")
        try:
            await bot.login(token)
        except discord.LoginFailure as exc:
            logger.critical(f"Failed to log in: {exc}")
            return 1

        # Configs are validated over REST before any gateway event is received
        if not await mount_guild_configs(bot, store):
            return 1

        logger.info("Connecting to the Discord gateway…")
        await bot.connect()
    except asyncio.CancelledError:
        logger.info("Discord bot cancelled; shutting down")
    finally:
        if not bot.is_closed():
            await bot.close()
        logger.info("Discord bot stopped.")

    return 0


def main() -> int:
    """Entrypoint that orchestrates the async runtime and returns the process code."""
    logger.info("Starting Pollguard…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical(f"An unexpected error occurred while running the bot: {exc}")
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
