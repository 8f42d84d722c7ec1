"""Prompter backed by click's terminal prompts."""

from __future__ import annotations

from typing import Union

import click

from hookpost.core.mutations import EditFields
from hookpost.prompts.base import CANCELLED, Cancelled, NoticeLevel, ProfileFields, Prompter

_LEVEL_COLORS = {"info": "cyan", "success": "green", "error": "red"}


class TerminalPrompter(Prompter):
    """Blank input (or Ctrl-C) on a required field cancels the prompt."""

    async def prompt_profile_form(
        self, existing: ProfileFields | None = None, error: str = ""
    ) -> Union[ProfileFields, Cancelled]:
        existing = existing or ProfileFields()
        click.secho("Webhook Profile", bold=True)
        if error:
            click.secho(error, fg="red")
        try:
            name = click.prompt("Profile Name", default=existing.name or "", show_default=bool(existing.name))
            nickname = click.prompt("Bot Nickname", default=existing.nickname or "", show_default=False)
            url = click.prompt("Webhook URL", default=existing.url or "", show_default=False)
        except click.Abort:
            return CANCELLED
        if not name and not url:
            return CANCELLED
        return ProfileFields(name=name, nickname=nickname, url=url)

    async def prompt_message_id(self) -> Union[str, Cancelled]:
        try:
            value = click.prompt("Message ID", default="", show_default=False)
        except click.Abort:
            return CANCELLED
        value = value.strip()
        return value or CANCELLED

    async def prompt_edit_fields(self, fields: EditFields) -> Union[EditFields, Cancelled]:
        try:
            if fields.is_embed:
                title = click.prompt("Title", default=fields.title or "", show_default=True)
                description = click.prompt(
                    "Description", default=fields.description or "", show_default=True
                )
                return EditFields(title=title, description=description)
            content = click.prompt("Content", default=fields.content or "", show_default=True)
            return EditFields(content=content)
        except click.Abort:
            return CANCELLED

    async def confirm(self, message: str) -> bool:
        try:
            return click.confirm(message, default=False)
        except click.Abort:
            return False

    async def notify(self, title: str, text: str, level: NoticeLevel = "info") -> None:
        click.secho(f"{title}: {text}", fg=_LEVEL_COLORS.get(level), err=level == "error")
