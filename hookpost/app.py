"""hookpost application - wires the store, webhook client and engines together."""

from __future__ import annotations

from dataclasses import replace

from hookpost.config import Settings
from hookpost.core.bulk import BulkExecutor
from hookpost.core.guard import OperationGuard
from hookpost.core.mutations import (
    ComposeState,
    EditFields,
    MutationEngine,
    apply_edit_fields,
    edit_fields_for,
)
from hookpost.core.results import BulkReport, OperationResult, SyncReport
from hookpost.core.search import filter_messages
from hookpost.core.sync import SyncCoordinator
from hookpost.core.validation import normalize_color, require_field, validate_webhook_url
from hookpost.errors import ProfileNotFound, ValidationFailure
from hookpost.models import Message, Profile
from hookpost.prompts.base import CANCELLED, ProfileFields, Prompter
from hookpost.remote.base import ChannelClient
from hookpost.remote.discord_webhook import DiscordWebhookClient
from hookpost.store.base import ProfilePersistence
from hookpost.store.profiles import ProfileStore
from hookpost.store.sqlite import SqlitePersistence
from hookpost.utils.logging import get_logger

log = get_logger(__name__)


class HookpostApp:
    """Main application orchestrator."""

    def __init__(
        self,
        settings: Settings,
        prompter: Prompter,
        client: ChannelClient | None = None,
        persistence: ProfilePersistence | None = None,
    ) -> None:
        self.settings = settings
        self.prompter = prompter
        self.persistence = persistence or SqlitePersistence(settings.get_db_path())
        self.client = client or DiscordWebhookClient(settings.webhook)

        self.store = ProfileStore(self.persistence)
        self.guard = OperationGuard()
        self.sync_coordinator = SyncCoordinator(self.store, self.client, self.guard)
        self.mutations = MutationEngine(
            self.store,
            self.client,
            self.guard,
            color_history_size=settings.compose.color_history_size,
        )
        self.bulk = BulkExecutor(self.store, self.client, self.guard)
        self.compose = ComposeState(color=settings.compose.default_color)

    async def start(self) -> None:
        await self.persistence.start()
        await self.store.load()
        log.info("hookpost_started", profiles=len(self.store.profiles), active=self.store.active_id)

    async def stop(self) -> None:
        await self.mutations.drain()
        await self.client.aclose()
        await self.persistence.stop()
        log.info("hookpost_stopped")

    async def __aenter__(self) -> HookpostApp:
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def resolve_profile(self, ref: str | None = None) -> Profile:
        """Find a profile by id, name or 1-based position; the active one if ``ref`` is None."""
        if ref is None:
            active = self.store.active
            if active is None:
                raise ProfileNotFound("(no active profile)")
            return active

        profile = self.store.find(ref)
        if profile is not None:
            return profile
        for candidate in self.store.profiles:
            if candidate.name.lower() == ref.lower():
                return candidate
        if ref.isdigit() and 1 <= int(ref) <= len(self.store.profiles):
            return self.store.profiles[int(ref) - 1]
        raise ProfileNotFound(ref)

    def validate_profile_fields(self, fields: ProfileFields) -> ProfileFields:
        if not (fields.name or "").strip() or not (fields.url or "").strip():
            raise ValidationFailure("Required fields missing")
        return ProfileFields(
            name=require_field(fields.name, "name", "Profile name"),
            nickname=(fields.nickname or "").strip(),
            url=validate_webhook_url(
                fields.url,
                provider_markers=self.settings.webhook.provider_markers,
                path_marker=self.settings.webhook.path_marker,
            ),
        )

    async def create_profile(self, fields: ProfileFields) -> Profile:
        """Validate and store a new profile, which becomes the active one."""
        fields = self.validate_profile_fields(fields)
        profile = Profile(name=fields.name, nickname=fields.nickname, url=fields.url)
        return await self.store.add(profile, activate=True)

    async def update_profile(self, profile_id: str, fields: ProfileFields) -> Profile:
        fields = self.validate_profile_fields(fields)
        self.store.get(profile_id)
        updated = await self.store.update(
            profile_id,
            lambda p: replace(p, name=fields.name, nickname=fields.nickname, url=fields.url),
        )
        if updated is None:
            raise ProfileNotFound(profile_id)
        log.info("profile_updated", profile=profile_id)
        return updated

    async def _profile_form(self, existing: Profile | None) -> ProfileFields | None:
        fields = (
            ProfileFields(name=existing.name, nickname=existing.nickname, url=existing.url)
            if existing
            else None
        )
        error = ""
        while True:
            result = await self.prompter.prompt_profile_form(fields, error)
            if result is CANCELLED:
                return None
            try:
                return self.validate_profile_fields(result)
            except ValidationFailure as e:
                fields, error = result, str(e)

    async def add_profile(self) -> Profile | None:
        fields = await self._profile_form(None)
        if fields is None:
            return None
        return await self.create_profile(fields)

    async def edit_profile(self, profile_id: str) -> Profile | None:
        fields = await self._profile_form(self.store.get(profile_id))
        if fields is None:
            return None
        return await self.update_profile(profile_id, fields)

    async def delete_profile(self, profile_id: str, confirm: bool = True) -> bool:
        profile = self.store.get(profile_id)
        if confirm and not await self.prompter.confirm(f"Delete profile '{profile.name}'?"):
            return False
        await self.store.remove(profile_id)
        return True

    async def switch_profile(self, profile_id: str) -> SyncReport:
        """Make a profile active and refresh its history."""
        await self.store.set_active(profile_id)
        return await self.sync_coordinator.reconcile(profile_id)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def sync(self, profile_id: str | None = None) -> SyncReport:
        return await self.sync_coordinator.reconcile(self.resolve_profile(profile_id).id)

    def select_color(self, color: str) -> str:
        self.compose = replace(self.compose, color=normalize_color(color))
        return self.compose.color

    async def send(
        self, compose: ComposeState | None = None, profile_id: str | None = None
    ) -> OperationResult:
        profile = self.resolve_profile(profile_id)
        result = await self.mutations.send(profile.id, compose or self.compose)
        # On failure the compose state is left as it was for a retry
        if result.success:
            self.compose = result.data["compose"]
        return result

    async def import_message(
        self, message_id: str | None = None, profile_id: str | None = None
    ) -> OperationResult | None:
        profile = self.resolve_profile(profile_id)
        if message_id is None:
            prompted = await self.prompter.prompt_message_id()
            if prompted is CANCELLED:
                return None
            message_id = prompted

        result = await self.mutations.import_message(profile.id, message_id)
        if result.data.get("duplicate"):
            await self.prompter.notify("Already Tracked", result.output, "info")
        elif result.success:
            await self.prompter.notify("Imported", result.output, "success")
        else:
            await self.prompter.notify("Error", result.error, "error")
        return result

    async def edit_message(
        self,
        message_id: str,
        fields: EditFields | None = None,
        profile_id: str | None = None,
    ) -> OperationResult | None:
        profile = self.resolve_profile(profile_id)
        message = profile.find_message(message_id)
        if message is None:
            return OperationResult(False, error=f"Message {message_id} is not tracked")

        if fields is None:
            prompted = await self.prompter.prompt_edit_fields(edit_fields_for(message))
            if prompted is CANCELLED:
                return None
            fields = prompted
        try:
            payload = apply_edit_fields(message.payload, fields)
        except ValidationFailure as e:
            return OperationResult(False, error=str(e))
        return await self.mutations.edit_message(profile.id, message_id, payload)

    async def delete_message(
        self, message_id: str, profile_id: str | None = None
    ) -> OperationResult:
        profile = self.resolve_profile(profile_id)
        return await self.mutations.delete_message(profile.id, message_id)

    async def delete_all(
        self, profile_id: str | None = None, confirm: bool = True
    ) -> BulkReport | None:
        profile = self.resolve_profile(profile_id)
        if confirm and not await self.prompter.confirm("Delete All Messages?"):
            return None
        return await self.bulk.bulk_delete(profile.id)

    def search(self, query: str, profile_id: str | None = None) -> list[Message]:
        return filter_messages(self.resolve_profile(profile_id).messages, query)
