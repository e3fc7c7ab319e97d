from types import SimpleNamespace

from fakes import FakeTextChannel, make_member, make_permissions
from pollguard.configuration.guild_config import GuildPolicy
from pollguard.moderation.policy import can_act_in, is_immune, member_role_ids


def make_policy(excluded_roles=()):
    return GuildPolicy(
        guild_id=1,
        guild=SimpleNamespace(id=1),
        log_destination=FakeTextChannel(10, "poll-logs"),
        excluded_roles=frozenset(excluded_roles),
    )


def test_member_with_excluded_role_is_immune():
    assert is_immune(frozenset([5, 7]), make_policy([7, 8]))


def test_member_without_excluded_role_is_not_immune():
    assert not is_immune(frozenset([5, 6]), make_policy([7, 8]))


def test_member_without_roles_is_not_immune():
    assert not is_immune(frozenset(), make_policy([7]))


def test_no_excluded_roles_means_nobody_is_immune():
    assert not is_immune(frozenset([1, 2, 3]), make_policy())


def test_member_role_ids_reads_member_roles():
    assert member_role_ids(make_member(role_ids=[5, 7])) == frozenset({5, 7})
    assert member_role_ids(make_member()) == frozenset()


def test_can_act_in_requires_manage_messages():
    guild = SimpleNamespace(me=SimpleNamespace(id=999))

    allowed = FakeTextChannel(guild=guild, permissions=make_permissions(manage_messages=True))
    denied = FakeTextChannel(guild=guild, permissions=make_permissions(manage_messages=False))

    assert can_act_in(allowed)
    assert not can_act_in(denied)


def test_can_act_in_without_bot_member():
    channel = FakeTextChannel(guild=SimpleNamespace(me=None))

    assert not can_act_in(channel)
