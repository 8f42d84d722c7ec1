"""Case-insensitive filtering of a profile's cached messages."""

from __future__ import annotations

from collections.abc import Sequence

from hookpost.models import EmbedPayload, Message, TextPayload


def _searchable_fields(message: Message) -> list[str]:
    payload = message.payload
    if isinstance(payload, TextPayload):
        return [payload.content]
    if isinstance(payload, EmbedPayload):
        return [f for f in (payload.embed.title, payload.embed.description) if f]
    return []


def filter_messages(messages: Sequence[Message], query: str) -> list[Message]:
    """Return messages whose content, embed title or description contains ``query``.

    An empty query returns every message. Order is preserved.
    """
    if not query:
        return list(messages)
    needle = query.lower()
    return [
        m for m in messages
        if any(needle in field.lower() for field in _searchable_fields(m))
    ]
