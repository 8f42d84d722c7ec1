"""Typed models for profiles, cached messages and their payloads.

Every model is frozen. Changes are made with ``dataclasses.replace`` so a
reader holding a reference never observes a half-updated profile.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Any, Union
from uuid import uuid4

MAX_COLOR = 0xFFFFFF


@dataclass(frozen=True)
class TextPayload:
    content: str = ""

    def to_wire(self) -> dict[str, Any]:
        return {"content": self.content}


@dataclass(frozen=True)
class Embed:
    title: str | None = None
    description: str | None = None
    color: int = 0

    def __post_init__(self) -> None:
        # Blank text is stored as None so a payload compares equal after a wire round trip
        if not self.title:
            object.__setattr__(self, "title", None)
        if not self.description:
            object.__setattr__(self, "description", None)
        if not 0 <= self.color <= MAX_COLOR:
            raise ValueError(f"embed color out of range: {self.color}")

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"color": self.color}
        if self.title:
            data["title"] = self.title
        if self.description:
            data["description"] = self.description
        return data


@dataclass(frozen=True)
class EmbedPayload:
    embed: Embed

    def to_wire(self) -> dict[str, Any]:
        return {"embeds": [self.embed.to_wire()]}


Payload = Union[TextPayload, EmbedPayload]


def payload_from_wire(data: dict[str, Any]) -> Payload:
    """Build a payload from a webhook message body.

    The kind is decided by the presence of a non-empty ``embeds`` list; only
    the first embed is kept.
    """
    embeds = data.get("embeds") or []
    if embeds:
        first = embeds[0]
        return EmbedPayload(
            Embed(
                title=first.get("title"),
                description=first.get("description"),
                color=int(first.get("color") or 0),
            )
        )
    return TextPayload(content=data.get("content") or "")


@dataclass(frozen=True)
class Message:
    remote_id: str
    payload: Payload
    timestamp: str
    imported: bool = False

    @property
    def is_embed(self) -> bool:
        return isinstance(self.payload, EmbedPayload)

    def with_payload(self, payload: Payload) -> Message:
        return replace(self, payload=payload)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.remote_id,
            "payload": self.payload.to_wire(),
            "timestamp": self.timestamp,
            "imported": self.imported,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        return cls(
            remote_id=str(data["id"]),
            payload=payload_from_wire(data.get("payload") or {}),
            timestamp=data.get("timestamp", ""),
            imported=bool(data.get("imported", False)),
        )


def push_color(history: tuple[str, ...], color: str, limit: int = 5) -> tuple[str, ...]:
    """Move ``color`` to the front of ``history``, dropping duplicates and overflow."""
    return (color, *(c for c in history if c != color))[:limit]


def _new_profile_id() -> str:
    return uuid4().hex[:12]


@dataclass(frozen=True)
class Profile:
    name: str
    url: str
    nickname: str = ""
    messages: tuple[Message, ...] = ()
    color_history: tuple[str, ...] = ()
    id: str = field(default_factory=_new_profile_id)

    @property
    def display_name(self) -> str:
        return self.nickname or "Webhook"

    def find_message(self, remote_id: str) -> Message | None:
        for message in self.messages:
            if message.remote_id == remote_id:
                return message
        return None

    def has_message(self, remote_id: str) -> bool:
        return self.find_message(remote_id) is not None

    def with_messages(self, messages: Iterable[Message]) -> Profile:
        return replace(self, messages=tuple(messages))

    def append_message(self, message: Message) -> Profile:
        return replace(self, messages=(*self.messages, message))

    def without_messages(self, remote_ids: set[str] | frozenset[str]) -> Profile:
        return replace(
            self,
            messages=tuple(m for m in self.messages if m.remote_id not in remote_ids),
        )

    def with_color(self, color: str, limit: int = 5) -> Profile:
        return replace(self, color_history=push_color(self.color_history, color, limit))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "nickname": self.nickname,
            "url": self.url,
            "messages": [m.to_dict() for m in self.messages],
            "color_history": list(self.color_history),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Profile:
        kwargs: dict[str, Any] = {}
        # Profiles saved before ids existed get a fresh one
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(
            name=data["name"],
            url=data["url"],
            nickname=data.get("nickname") or "",
            messages=tuple(Message.from_dict(m) for m in data.get("messages") or []),
            color_history=tuple(data.get("color_history") or data.get("colorHistory") or []),
            **kwargs,
        )


# ---------------------------------------------------------------------------
# Reconciliation outcomes (never persisted)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Unchanged:
    message: Message
    reason: str = ""


@dataclass(frozen=True)
class Updated:
    message: Message
    payload: Payload


@dataclass(frozen=True)
class Dropped:
    message: Message


SyncOutcome = Union[Unchanged, Updated, Dropped]
