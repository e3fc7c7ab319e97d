"""Event listener Cog for Pollguard.

py-cord has no high-level event for polls, so this cog listens to the raw
gateway feed (``on_socket_raw_receive``), decodes each frame and hands the
envelope to the :class:`~pollguard.moderation.poll_router.PollRouter`.
"""

import json

import discord
from discord.ext import commands

from pollguard.moderation.poll_router import PollRouter
from pollguard.util.logger import get_logger

logger = get_logger("events_listener_cog")

# Marker used to skip decoding frames that cannot be message creations
MESSAGE_CREATE_MARKER = '"MESSAGE_CREATE"'


class EventsListenerCog(commands.Cog):
    """Cog containing the ready handler and the raw gateway poll listener."""

    def __init__(self, discord_bot_instance, router: PollRouter):
        """Initialize the events listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        router:
            Router applying guild policies to decoded gateway events.
        """
        self.bot = discord_bot_instance
        self.router = router
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        if self.bot.user:
            logger.info(f"Logged in as {self.bot.user} ({self.bot.user.id})")
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

    @commands.Cog.listener(name="on_socket_raw_receive")
    async def on_socket_raw_receive(self, msg):
        """Decode a raw gateway frame and route it if it may carry a poll.

        Parameters
        ----------
        msg:
            The frame as received from the websocket, ``str`` or ``bytes``.
        """
        if isinstance(msg, (bytes, bytearray)):
            try:
                msg = msg.decode("utf-8")
            except UnicodeDecodeError:
                return

        if not isinstance(msg, str) or MESSAGE_CREATE_MARKER not in msg:
            return

        try:
            envelope = json.loads(msg)
        except json.JSONDecodeError as exc:
            logger.debug(f"Dropping undecodable gateway frame: {exc}")
            return

        await self.router.handle_event(envelope)


def setup(discord_bot_instance: discord.Bot, router: PollRouter):
    """Register the EventsListenerCog with the bot.

    Parameters
    ----------
    discord_bot_instance:
        The Discord bot instance to add this cog to.
    router:
        The poll router the cog forwards gateway events to.
    """
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, router))
