"""Predicates deciding whether a poll may be removed."""

from typing import Iterable

from pollguard.configuration.guild_config import GuildPolicy
from pollguard.util import discord_utils


def member_role_ids(member) -> frozenset[int]:
    """Return the IDs of the roles a guild member holds."""
    return frozenset(role.id for role in member.roles)


def is_immune(role_ids: Iterable[int], policy: GuildPolicy) -> bool:
    """Return True if any of the author's ``role_ids`` is excluded by the guild's policy."""
    if not policy.excluded_roles:
        return False
    return not policy.excluded_roles.isdisjoint(role_ids)


def can_act_in(channel) -> bool:
    """Return True if the bot currently holds "Manage Messages" in ``channel``."""
    return discord_utils.bot_can_manage_messages(channel)
