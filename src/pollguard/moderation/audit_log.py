"""
Audit log embeds for removed polls.

Every removal is reported to the guild's logging channel as one embed. The
embed lists the question, each answer with its emoji, the author, the
channel, and when the poll was posted.
"""

from pathlib import Path

import discord

from pollguard.configuration.app_configuration import app_config
from pollguard.configuration.guild_config import GuildPolicy
from pollguard.datatypes.poll_datatypes import Poll, PollAnswer, PollEmoji
from pollguard.util.logger import get_logger

logger = get_logger("audit_log")

# Discord embed limits
FIELD_VALUE_LIMIT = 1024
DESCRIPTION_LIMIT = 4096
ELLIPSIS = "..."

EMOJI_CDN_URL = "https://cdn.discordapp.com/emojis/{id}.{extension}"
POLL_ICON_FILENAME = "poll_delete.png"


def crop_field_content(text: str, limit: int = FIELD_VALUE_LIMIT) -> str:
    """Crop ``text`` to ``limit`` characters, ending in an ellipsis when cut."""
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def format_emoji(emoji: PollEmoji) -> str:
    """Render an answer emoji as inline code, linked to its image for custom emoji."""
    formatted_name = f"`{emoji.name}`"

    if not emoji.is_custom:
        return formatted_name

    extension = "gif" if emoji.animated else "webp"
    url = EMOJI_CDN_URL.format(id=emoji.id, extension=extension)
    return f"[{formatted_name}]({url})"


def format_answer(answer: PollAnswer) -> str:
    if answer.emoji is not None:
        return f"{answer.answer_id}. {format_emoji(answer.emoji)} {answer.text}"
    return f"{answer.answer_id}. {answer.text}"


def build_removal_embed(message: discord.Message, poll: Poll, deleted: bool = True) -> discord.Embed:
    """
    Build the embed describing a removed poll.

    Args:
        message: The message that carried the poll.
        poll: The poll parsed from the gateway payload.
        deleted: Whether the message was actually deleted.

    Returns:
        discord.Embed: The audit log entry.
    """
    answers = "\n".join(format_answer(answer) for answer in poll.answers)

    embed = discord.Embed(
        color=discord.Color.red(),
        description=crop_field_content(f"**Answers**:\n\n{answers}", DESCRIPTION_LIMIT),
        timestamp=discord.utils.utcnow(),
    )
    embed.set_author(name="Poll Deleted", icon_url=f"attachment://{POLL_ICON_FILENAME}")
    embed.add_field(name="Question", value=crop_field_content(poll.question) or "\u200b", inline=False)
    embed.add_field(
        name="Author",
        value=f"{message.author.mention} (`{message.author.id}`)",
        inline=False,
    )
    embed.add_field(
        name="Channel",
        value=f"{message.channel.mention} (`#{message.channel.name}`)",
        inline=False,
    )
    embed.add_field(
        name="Posted",
        value=discord.utils.format_dt(message.created_at, "f"),
        inline=False,
    )
    if not deleted:
        embed.add_field(
            name="Removal",
            value="The message could not be deleted, it may need to be removed manually.",
            inline=False,
        )
    return embed


async def send_removal_log(
    policy: GuildPolicy,
    message: discord.Message,
    poll: Poll,
    deleted: bool = True,
    icon_path: Path | None = None,
) -> bool:
    """
    Send the audit log entry for a removed poll to the guild's logging channel.

    Delivery is attempted once. Failures are logged and reported through the
    return value, never raised.

    Returns:
        bool: True if the log message was sent.
    """
    embed = build_removal_embed(message, poll, deleted=deleted)
    icon_path = icon_path or app_config.poll_icon_path

    files = []
    if icon_path.is_file():
        files.append(discord.File(str(icon_path), filename=POLL_ICON_FILENAME))
    else:
        embed.set_author(name="Poll Deleted")

    try:
        await policy.log_destination.send(embed=embed, files=files)
        return True
    except discord.HTTPException as exc:
        logger.error(
            f"[GUILD: {policy.guild_id}] Failed to log removed poll {message.id} "
            f"to channel {policy.log_destination.id}: {exc}"
        )
        return False
