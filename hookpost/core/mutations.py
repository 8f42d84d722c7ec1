"""Send, import, edit and delete operations against one profile."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from hookpost.core.guard import Lane, OperationGuard
from hookpost.core.results import OperationResult
from hookpost.core.validation import color_to_int, normalize_color
from hookpost.errors import (
    OperationInFlight,
    RemoteError,
    RemoteFailure,
    RemoteNotFound,
    ValidationFailure,
)
from hookpost.models import Embed, EmbedPayload, Message, Payload, Profile, TextPayload
from hookpost.remote.base import ChannelClient
from hookpost.store.profiles import ProfileStore
from hookpost.utils.logging import get_logger

log = get_logger(__name__)

IMPORTED_SUFFIX = " (Imported)"


class ComposeMode(str, Enum):
    TEXT = "text"
    EMBED = "embed"


@dataclass
class ComposeState:
    mode: ComposeMode = ComposeMode.TEXT
    text: str = ""
    title: str = ""
    description: str = ""
    color: str = "#5865f2"

    def cleared(self) -> ComposeState:
        """Compose state after a successful send; the colour is kept."""
        return replace(self, text="", title="", description="")


@dataclass(frozen=True)
class EditFields:
    """Editable fields of a message: content for text, title/description for embeds."""

    content: str | None = None
    title: str | None = None
    description: str | None = None

    @property
    def is_embed(self) -> bool:
        return self.content is None


def edit_fields_for(message: Message) -> EditFields:
    payload = message.payload
    if isinstance(payload, EmbedPayload):
        return EditFields(
            title=payload.embed.title or "",
            description=payload.embed.description or "",
        )
    return EditFields(content=payload.content)


def apply_edit_fields(existing: Payload, fields: EditFields) -> Payload:
    """Build the replacement payload. An embed keeps its colour.

    Raises ``ValidationFailure`` when the fields are for the other payload kind.
    """
    if fields.is_embed != isinstance(existing, EmbedPayload):
        expected = "title/description" if isinstance(existing, EmbedPayload) else "content"
        raise ValidationFailure(f"This message can only be edited with {expected}", field="content")
    if isinstance(existing, EmbedPayload):
        return EmbedPayload(
            replace(existing.embed, title=fields.title, description=fields.description)
        )
    return TextPayload(content=fields.content or "")


def build_payload(compose: ComposeState) -> tuple[Payload, str | None]:
    """Return the payload to send and, for embeds, the normalized colour used."""
    if compose.mode is ComposeMode.TEXT:
        content = compose.text.strip()
        if not content:
            raise ValidationFailure("Message content is empty", field="text")
        return TextPayload(content=content), None

    color = normalize_color(compose.color)
    embed = Embed(
        title=compose.title,
        description=compose.description,
        color=color_to_int(color),
    )
    return EmbedPayload(embed), color


def display_time(imported: bool = False) -> str:
    stamp = datetime.now().strftime("%H:%M:%S")
    return stamp + IMPORTED_SUFFIX if imported else stamp


class MutationEngine:
    """Create, import, edit and delete tracked messages.

    Send, import and edit touch the cache only after the webhook confirmed
    the change. Delete removes the message locally first and sends the
    remote delete in the background; a delete that fails remotely comes
    back on the next sync.
    """

    def __init__(
        self,
        store: ProfileStore,
        client: ChannelClient,
        guard: OperationGuard,
        color_history_size: int = 5,
    ) -> None:
        self._store = store
        self._client = client
        self._guard = guard
        self._color_history_size = color_history_size
        self._pending_deletes: set[asyncio.Task[None]] = set()

    @property
    def pending_deletes(self) -> int:
        return len(self._pending_deletes)

    async def send(self, profile_id: str, compose: ComposeState) -> OperationResult:
        profile = self._store.find(profile_id)
        if profile is None:
            return OperationResult(False, error="Profile not found", data={"compose": compose})

        try:
            payload, color = build_payload(compose)
        except ValidationFailure as e:
            return OperationResult(False, error=str(e), data={"compose": compose})

        try:
            async with self._guard.hold(profile_id, Lane.MUTATION, "send"):
                try:
                    remote_id = await self._client.create_message(profile.url, payload)
                except RemoteError as e:
                    log.warning("send_failed", profile=profile_id, error=str(e))
                    return OperationResult(
                        False, error=f"Send failed: {e}", data={"compose": compose}
                    )

                message = Message(remote_id=remote_id, payload=payload, timestamp=display_time())

                def apply(current: Profile) -> Profile:
                    updated = current.append_message(message)
                    if color is not None:
                        updated = updated.with_color(color, self._color_history_size)
                    return updated

                await self._store.update(profile_id, apply)
        except OperationInFlight as e:
            return OperationResult(False, error=str(e), data={"compose": compose})

        log.info("message_sent", profile=profile_id, message=remote_id, mode=compose.mode.value)
        return OperationResult(
            True,
            output="Message sent",
            data={"message": message, "compose": compose.cleared()},
        )

    async def import_message(self, profile_id: str, message_id: str) -> OperationResult:
        message_id = (message_id or "").strip()
        if not message_id:
            return OperationResult(False, error="You must provide a message ID")

        profile = self._store.find(profile_id)
        if profile is None:
            return OperationResult(False, error="Profile not found")
        if profile.has_message(message_id):
            return self._already_tracked(message_id)

        try:
            async with self._guard.hold(profile_id, Lane.SYNC, "import"):
                try:
                    payload = await self._client.fetch_message(profile.url, message_id)
                except RemoteNotFound:
                    return OperationResult(
                        False,
                        error="Could not find message. Ensure the ID is correct for this webhook.",
                    )
                except RemoteFailure as e:
                    log.warning("import_failed", profile=profile_id, message=message_id, error=str(e))
                    return OperationResult(False, error=f"Could not fetch message: {e}")

                current = self._store.find(profile_id)
                if current is None:
                    return OperationResult(False, error="Profile not found")
                if current.has_message(message_id):
                    return self._already_tracked(message_id)

                message = Message(
                    remote_id=message_id,
                    payload=payload,
                    timestamp=display_time(imported=True),
                    imported=True,
                )
                await self._store.update(profile_id, lambda p: p.append_message(message))
        except OperationInFlight as e:
            return OperationResult(False, error=str(e))

        log.info("message_imported", profile=profile_id, message=message_id)
        return OperationResult(True, output="Message added to history", data={"message": message})

    @staticmethod
    def _already_tracked(message_id: str) -> OperationResult:
        return OperationResult(
            True,
            output="This message is already in your history.",
            data={"duplicate": True, "message_id": message_id},
        )

    async def edit_message(
        self, profile_id: str, message_id: str, payload: Payload
    ) -> OperationResult:
        profile = self._store.find(profile_id)
        if profile is None:
            return OperationResult(False, error="Profile not found")
        if not profile.has_message(message_id):
            return OperationResult(False, error=f"Message {message_id} is not tracked")

        try:
            await self._client.patch_message(profile.url, message_id, payload)
        except RemoteError as e:
            log.warning("edit_failed", profile=profile_id, message=message_id, error=str(e))
            return OperationResult(False, error=f"Edit failed: {e}")

        def apply(current: Profile) -> Profile:
            return current.with_messages(
                m.with_payload(payload) if m.remote_id == message_id else m
                for m in current.messages
            )

        await self._store.update(profile_id, apply)
        log.info("message_edited", profile=profile_id, message=message_id)
        return OperationResult(True, output="Message updated")

    async def delete_message(self, profile_id: str, message_id: str) -> OperationResult:
        profile = self._store.find(profile_id)
        if profile is None:
            return OperationResult(False, error="Profile not found")
        if not profile.has_message(message_id):
            return OperationResult(False, error=f"Message {message_id} is not tracked")

        task = asyncio.create_task(
            self._remote_delete(profile.url, message_id),
            name=f"delete-{message_id}",
        )
        self._pending_deletes.add(task)
        task.add_done_callback(self._pending_deletes.discard)

        await self._store.update(profile_id, lambda p: p.without_messages({message_id}))
        return OperationResult(True, output="Message deleted")

    async def _remote_delete(self, url: str, message_id: str) -> None:
        try:
            await self._client.delete_message(url, message_id)
        except RemoteNotFound:
            log.info("delete_already_gone", message=message_id)
        except RemoteFailure as e:
            log.warning("delete_failed", message=message_id, error=str(e))
        except Exception:
            log.exception("delete_error", message=message_id)
        else:
            log.info("message_deleted", message=message_id)

    async def drain(self) -> None:
        """Wait for background deletes still in flight."""
        if self._pending_deletes:
            await asyncio.gather(*list(self._pending_deletes), return_exceptions=True)
