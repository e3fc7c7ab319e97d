from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import discord
import pytest

from fakes import FakeTextChannel, make_member, make_message
from pollguard.configuration.guild_config import GuildPolicy
from pollguard.datatypes.poll_datatypes import Poll, PollAnswer, PollEmoji
from pollguard.moderation import audit_log
from pollguard.moderation.audit_log import (
    build_removal_embed,
    crop_field_content,
    format_answer,
    format_emoji,
    send_removal_log,
)

ICON_PATH = Path(__file__).resolve().parents[1] / "assets" / "poll_delete.png"


def make_poll(question="Cats or dogs?"):
    return Poll(
        question=question,
        answers=(
            PollAnswer(answer_id=1, text="Cats", emoji=PollEmoji(name="🐱")),
            PollAnswer(answer_id=2, text="Dogs", emoji=PollEmoji(name="doge", id=77, animated=False)),
            PollAnswer(answer_id=3, text="Neither"),
        ),
    )


def make_policy(log_destination=None):
    return GuildPolicy(
        guild_id=1,
        guild=SimpleNamespace(id=1),
        log_destination=log_destination or FakeTextChannel(10, "poll-logs"),
    )


class TestCropFieldContent:
    def test_short_text_untouched(self):
        assert crop_field_content("short") == "short"

    def test_exact_limit_untouched(self):
        text = "a" * 1024
        assert crop_field_content(text) == text

    def test_long_text_cropped_with_ellipsis(self):
        cropped = crop_field_content("q" * 2000)

        assert len(cropped) == 1024
        assert cropped == "q" * 1021 + "..."

    def test_custom_limit(self):
        assert crop_field_content("abcdefgh", limit=6) == "abc..."


def test_builtin_emoji_is_inline_code():
    assert format_emoji(PollEmoji(name="🐱")) == "`🐱`"


@pytest.mark.parametrize("animated, extension", [(False, "webp"), (True, "gif")])
def test_custom_emoji_links_to_cdn(animated, extension):
    formatted = format_emoji(PollEmoji(name="doge", id=77, animated=animated))

    assert formatted == f"[`doge`](https://cdn.discordapp.com/emojis/77.{extension})"


def test_format_answer():
    assert format_answer(PollAnswer(answer_id=3, text="Neither")) == "3. Neither"
    assert format_answer(PollAnswer(answer_id=1, text="Cats", emoji=PollEmoji(name="🐱"))) == "1. `🐱` Cats"


def test_build_removal_embed_fields():
    channel = FakeTextChannel(500, "general")
    message = make_message(author=make_member(42), channel=channel)

    embed = build_removal_embed(message, make_poll())

    fields = {field.name: field.value for field in embed.fields}
    assert embed.author.name == "Poll Deleted"
    assert embed.description == (
        "**Answers**:\n\n"
        "1. `🐱` Cats\n"
        "2. [`doge`](https://cdn.discordapp.com/emojis/77.webp) Dogs\n"
        "3. Neither"
    )
    assert fields["Question"] == "Cats or dogs?"
    assert fields["Author"] == "<@42> (`42`)"
    assert fields["Channel"] == "<#500> (`#general`)"
    assert fields["Posted"] == discord.utils.format_dt(message.created_at, "f")
    assert "Removal" not in fields


def test_build_removal_embed_crops_question():
    message = make_message(channel=FakeTextChannel())

    embed = build_removal_embed(message, make_poll("x" * 2000))

    question = next(field.value for field in embed.fields if field.name == "Question")
    assert len(question) == 1024
    assert question.endswith("...")


def test_build_removal_embed_notes_failed_deletion():
    message = make_message(channel=FakeTextChannel())

    embed = build_removal_embed(message, make_poll(), deleted=False)

    assert any(field.name == "Removal" for field in embed.fields)


@pytest.mark.asyncio
async def test_send_removal_log_attaches_icon():
    log_channel = FakeTextChannel(10, "poll-logs")
    message = make_message(channel=FakeTextChannel())

    sent = await send_removal_log(make_policy(log_channel), message, make_poll(), icon_path=ICON_PATH)

    assert sent is True
    log_channel.send.assert_awaited_once()
    kwargs = log_channel.send.await_args.kwargs
    assert kwargs["embed"].fields[0].value == "Cats or dogs?"
    assert [file.filename for file in kwargs["files"]] == ["poll_delete.png"]


@pytest.mark.asyncio
async def test_send_removal_log_without_icon(tmp_path):
    log_channel = FakeTextChannel(10, "poll-logs")
    message = make_message(channel=FakeTextChannel())

    await send_removal_log(make_policy(log_channel), message, make_poll(), icon_path=tmp_path / "missing.png")

    kwargs = log_channel.send.await_args.kwargs
    assert kwargs["files"] == []
    assert not kwargs["embed"].author.icon_url


@pytest.mark.asyncio
async def test_send_removal_log_failure_is_logged_not_raised(monkeypatch, fake_http_response):
    log_channel = FakeTextChannel(10, "poll-logs")
    log_channel.send.side_effect = discord.Forbidden(fake_http_response, "Missing Access")
    error = MagicMock()
    monkeypatch.setattr(audit_log.logger, "error", error)

    sent = await send_removal_log(make_policy(log_channel), make_message(channel=FakeTextChannel()), make_poll())

    assert sent is False
    log_channel.send.assert_awaited_once()
    error.assert_called_once()
