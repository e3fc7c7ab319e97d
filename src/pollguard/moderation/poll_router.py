"""
Routing of raw gateway events to poll removal.

:class:`PollRouter` receives decoded gateway envelopes and runs the removal
sequence for poll-bearing ``MESSAGE_CREATE`` dispatches:

1. skip anything that is not a guild poll,
2. look up the guild's policy,
3. resolve the channel and check the bot may manage messages there,
4. fetch the message and skip authors holding an excluded role,
5. delete the message and send the audit log entry.

Lookup failures abandon only the event being handled. The router keeps no
state between events.
"""

import json
from typing import Any, Mapping

import discord

from pollguard.configuration.guild_config import GuildConfigStore
from pollguard.datatypes.poll_datatypes import RemovalCandidate, parse_gateway_event
from pollguard.moderation import audit_log, policy
from pollguard.util import discord_utils
from pollguard.util.logger import get_logger

logger = get_logger("poll_router")


class PollRouter:
    """Applies each guild's poll policy to incoming gateway events."""

    def __init__(self, bot: discord.Bot, store: GuildConfigStore) -> None:
        self.bot = bot
        self.store = store

    async def handle_event(self, envelope: Mapping[str, Any]) -> bool:
        """Handle one decoded gateway envelope.

        Returns
        -------
        bool
            True if a removal was attempted (and therefore logged).
        """
        candidate = parse_gateway_event(envelope)
        if candidate is None:
            return False
        return await self.handle_candidate(candidate)

    async def handle_candidate(self, candidate: RemovalCandidate) -> bool:
        guild_policy = self.store.get(candidate.guild_id)
        if guild_policy is None:
            logger.warning(f"[GUILD: {candidate.guild_id}] Config not found")
            return False

        channel = await discord_utils.resolve_channel(self.bot, candidate.channel_id)
        if channel is None or not discord_utils.is_text_channel(channel):
            return False

        user_reference = candidate.author.reference
        channel_name = getattr(channel, "name", candidate.channel_id)

        if not policy.can_act_in(channel):
            logger.warning(
                f'Ignoring poll from {user_reference}, sent in #{channel_name}. '
                f'Missing the "Manage Messages" permission'
            )
            return False

        message = await discord_utils.fetch_message(channel, candidate.message_id)
        if message is None:
            return False

        role_ids = await self._author_role_ids(candidate, channel)
        if role_ids is not None and policy.is_immune(role_ids, guild_policy):
            logger.debug(f"Keeping poll from {user_reference} in #{channel_name}, author holds an excluded role")
            return False

        logger.info(f"Removing poll from {user_reference}, sent in #{channel_name}")
        logger.debug(json.dumps(dict(candidate.poll.raw), indent=2, default=str))

        deleted = await discord_utils.safe_delete_message(message)
        if not deleted:
            logger.warning(f"Failed to remove poll from {user_reference}, sent in #{channel_name}")

        await audit_log.send_removal_log(guild_policy, message, candidate.poll, deleted=deleted)
        return True

    async def _author_role_ids(self, candidate: RemovalCandidate, channel) -> frozenset[int] | None:
        """Return the author's role IDs, or None if the author is not a resolvable member.

        Messages fetched over REST carry a plain user, so the roles come from
        the gateway payload's ``member`` object, falling back to a member fetch.
        """
        if candidate.member_role_ids is not None:
            return candidate.member_role_ids

        member = await discord_utils.fetch_member(channel.guild, candidate.author.id)
        if member is None:
            return None
        return policy.member_role_ids(member)
