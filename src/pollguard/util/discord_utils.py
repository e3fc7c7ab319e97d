"""
discord_utils.py
================

Low-level Discord helpers for Pollguard.

Stateless wrappers around channel lookups, permission checks and message
deletion. Lookup helpers return ``None`` instead of raising so callers can
abandon a single event without touching any other.
"""

import discord

from pollguard.util.logger import get_logger

logger = get_logger("discord_utils")

# Permissions the bot needs in a guild's logging channel
LOGGING_CHANNEL_PERMISSIONS = ("send_messages", "embed_links", "attach_files")


def is_text_channel(channel) -> bool:
    """
    Check whether a channel can receive messages (text, voice text, threads...).

    Args:
        channel: Any channel object returned by py-cord.

    Returns:
        bool: True if the channel is messageable, False otherwise.
    """
    return isinstance(channel, discord.abc.Messageable)


def missing_permissions(channel, member, required=LOGGING_CHANNEL_PERMISSIONS) -> list[str]:
    """
    List the permissions from ``required`` that ``member`` lacks in ``channel``.

    Args:
        channel: The guild channel to evaluate.
        member (discord.Member): The member whose permissions are resolved.
        required (Iterable[str]): ``discord.Permissions`` attribute names.

    Returns:
        list[str]: Missing permission names, in the order given.
    """
    permissions = channel.permissions_for(member)
    return [name for name in required if not getattr(permissions, name, False)]


def bot_can_manage_messages(channel) -> bool:
    """
    Determine if the bot may delete other members' messages in a channel.

    The check reads the guild's live member cache every time it runs.

    Args:
        channel: The guild channel to check permissions for.

    Returns:
        bool: True if the bot holds "Manage Messages" there, False otherwise.
    """
    guild = getattr(channel, "guild", None)
    me = getattr(guild, "me", None)
    if me is None:
        return False

    try:
        permissions = channel.permissions_for(me)
    except (AttributeError, TypeError):  # pragma: no cover - discord internals guard
        return False

    return bool(permissions.manage_messages)


async def resolve_channel(bot: discord.Bot, channel_id: int):
    """
    Return a channel by ID, preferring the gateway cache over a REST fetch.

    Args:
        bot (discord.Bot): The connected bot.
        channel_id (int): Channel snowflake.

    Returns:
        The channel, or None if it cannot be resolved.
    """
    channel = bot.get_channel(channel_id)
    if channel is not None:
        return channel

    try:
        return await bot.fetch_channel(channel_id)
    except (discord.HTTPException, discord.InvalidData) as exc:
        logger.debug(f"Could not resolve channel {channel_id}: {exc}")
        return None


async def fetch_message(channel, message_id: int):
    """
    Fetch a message from a channel.

    Args:
        channel (discord.abc.Messageable): The channel holding the message.
        message_id (int): The message snowflake.

    Returns:
        discord.Message | None: The message, or None if it is gone or inaccessible.
    """
    try:
        return await channel.fetch_message(message_id)
    except discord.HTTPException as exc:
        logger.debug(f"Could not fetch message {message_id}: {exc}")
        return None


async def safe_delete_message(message: discord.Message) -> bool:
    """
    Attempt to delete a Discord message, suppressing recoverable errors.

    Args:
        message (discord.Message): The message to delete.

    Returns:
        bool: True if deletion succeeded, False otherwise.
    """
    try:
        await message.delete()
        return True
    except discord.NotFound:
        logger.debug(f"Message {message.id} was already deleted")
    except discord.Forbidden:
        logger.warning(f"No permission to delete message {message.id}")
    except discord.HTTPException as exc:
        logger.error(f"Error deleting message {message.id}: {exc}")
    return False


async def fetch_member(guild, user_id: int):
    """
    Return a guild member, preferring the member cache over a REST fetch.

    The bot runs without the members intent, so the cache is usually empty.

    Args:
        guild (discord.Guild): The guild to look the member up in.
        user_id (int): The member's user snowflake.

    Returns:
        discord.Member | None: The member, or None if they cannot be resolved.
    """
    member = guild.get_member(user_id)
    if member is not None:
        return member

    try:
        return await guild.fetch_member(user_id)
    except discord.HTTPException as exc:
        logger.debug(f"Could not fetch member {user_id}: {exc}")
        return None
