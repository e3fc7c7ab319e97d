"""
Typed views over the raw gateway payloads Pollguard reacts to.

The gateway feed is a stream of envelopes ``{"op": ..., "t": ..., "d": ...}``
keyed by the event name in ``t``. Only ``MESSAGE_CREATE`` dispatches that
carry a ``poll`` object are relevant; :func:`parse_gateway_event` turns those
into a :class:`RemovalCandidate` and returns ``None`` for everything else.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

DISPATCH_OPCODE = 0
MESSAGE_CREATE = "MESSAGE_CREATE"


def _snowflake(value: Any) -> int | None:
    """Coerce a snowflake transmitted as a string (or int) into an int."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True, slots=True)
class PollEmoji:
    """Emoji attached to a poll answer. Built-in emoji have no ``id``."""

    name: str | None
    id: int | None = None
    animated: bool = False

    @property
    def is_custom(self) -> bool:
        return self.id is not None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "PollEmoji":
        return cls(
            name=data.get("name"),
            id=_snowflake(data.get("id")),
            animated=bool(data.get("animated", False)),
        )


@dataclass(frozen=True, slots=True)
class PollAnswer:
    answer_id: int
    text: str
    emoji: PollEmoji | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], position: int = 0) -> "PollAnswer":
        """Build an answer; ``position`` stands in for a missing or malformed ``answer_id``."""
        answer_id = _snowflake(data.get("answer_id"))
        media = data.get("poll_media") or {}
        emoji = media.get("emoji")
        return cls(
            answer_id=position if answer_id is None else answer_id,
            text=str(media.get("text") or ""),
            emoji=PollEmoji.from_payload(emoji) if isinstance(emoji, Mapping) else None,
        )


@dataclass(frozen=True, slots=True)
class Poll:
    """A poll as delivered in a message payload.

    ``raw`` keeps the untouched payload so it can be dumped to the debug log.
    """

    question: str
    answers: tuple[PollAnswer, ...]
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "Poll":
        question = data.get("question") or {}
        answers = data.get("answers") or []
        return cls(
            question=str(question.get("text") or ""),
            answers=tuple(
                PollAnswer.from_payload(answer, position=index)
                for index, answer in enumerate(answers, start=1)
                if isinstance(answer, Mapping)
            ),
            raw=data,
        )


@dataclass(frozen=True, slots=True)
class PollAuthor:
    id: int
    username: str

    @property
    def reference(self) -> str:
        """Operator-facing reference, e.g. ``@alice (1234)``."""
        return f"@{self.username} ({self.id})"


@dataclass(frozen=True, slots=True)
class RemovalCandidate:
    """A freshly created guild message carrying a poll, awaiting a policy decision."""

    guild_id: int
    channel_id: int
    message_id: int
    author: PollAuthor
    poll: Poll
    # Role IDs from the payload's ``member`` object; None when the payload has none
    member_role_ids: frozenset[int] | None = None

    @classmethod
    def from_message_payload(cls, data: Mapping[str, Any]) -> "RemovalCandidate | None":
        """Build a candidate from a ``MESSAGE_CREATE`` payload.

        Returns ``None`` when the payload has no poll, was not sent in a guild
        or lacks the identifiers needed to act on it.
        """
        poll = data.get("poll")
        if not isinstance(poll, Mapping):
            return None

        guild_id = _snowflake(data.get("guild_id"))
        channel_id = _snowflake(data.get("channel_id"))
        message_id = _snowflake(data.get("id"))
        author = data.get("author") or {}
        author_id = _snowflake(author.get("id"))
        if None in (guild_id, channel_id, message_id, author_id):
            return None

        member = data.get("member")
        member_role_ids = None
        if isinstance(member, Mapping):
            roles = (_snowflake(role) for role in member.get("roles") or ())
            member_role_ids = frozenset(role for role in roles if role is not None)

        return cls(
            guild_id=guild_id,
            channel_id=channel_id,
            message_id=message_id,
            author=PollAuthor(id=author_id, username=str(author.get("username") or "unknown")),
            poll=Poll.from_payload(poll),
            member_role_ids=member_role_ids,
        )


def parse_gateway_event(envelope: Mapping[str, Any]) -> RemovalCandidate | None:
    """Return the removal candidate carried by a gateway envelope, if any.

    Every variant other than a poll-bearing ``MESSAGE_CREATE`` dispatch is
    inert and yields ``None``.
    """
    if not isinstance(envelope, Mapping):
        return None
    if envelope.get("op", DISPATCH_OPCODE) != DISPATCH_OPCODE or envelope.get("t") != MESSAGE_CREATE:
        return None

    data = envelope.get("d")
    if not isinstance(data, Mapping):
        return None

    try:
        return RemovalCandidate.from_message_payload(data)
    except (TypeError, ValueError, AttributeError):
        return None
