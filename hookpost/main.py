"""hookpost entry point - command line interface over the application."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import click

from hookpost.app import HookpostApp
from hookpost.config import Settings, load_settings
from hookpost.core.mutations import ComposeMode, ComposeState, EditFields
from hookpost.core.results import OperationResult
from hookpost.core.validation import color_to_int, int_to_color
from hookpost.errors import HookpostError
from hookpost.models import EmbedPayload, Message, Profile
from hookpost.prompts.base import ProfileFields
from hookpost.prompts.terminal import TerminalPrompter
from hookpost.utils.logging import setup_logging

T = TypeVar("T")


def _run(settings: Settings, fn: Callable[[HookpostApp], Awaitable[T]]) -> T:
    async def runner() -> T:
        async with HookpostApp(settings, TerminalPrompter()) as app:
            return await fn(app)

    try:
        return asyncio.run(runner())
    except HookpostError as e:
        raise click.ClickException(str(e)) from e


def _report(result: OperationResult | None) -> None:
    if result is None:
        click.echo("Cancelled.")
        return
    if not result.success:
        raise click.ClickException(result.error)
    click.secho(result.output, fg="green")


def _rgb(color: int) -> tuple[int, int, int]:
    return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


def _render(profile: Profile, message: Message) -> str:
    header = click.style(f"{profile.display_name}", bold=True)
    header += click.style(f"  {message.timestamp}  [{message.remote_id}]", dim=True)
    payload = message.payload
    if isinstance(payload, EmbedPayload):
        header += click.style(f"  {int_to_color(payload.embed.color)}", dim=True)
        bar = click.style("▌", fg=_rgb(payload.embed.color))
        lines = [f"{bar} {click.style(payload.embed.title, bold=True)}"] if payload.embed.title else []
        lines += [f"{bar} {line}" for line in (payload.embed.description or "").splitlines()]
        return "\n".join([header, *lines])
    return f"{header}\n{payload.content}"


profile_option = click.option(
    "--profile", "profile_ref", default=None, help="Profile id, name or position (default: active)"
)


@click.group()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--data-dir", default=None, help="Directory holding the profile database")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str | None, data_dir: str | None) -> None:
    """Compose and send webhook messages and keep their history in sync."""
    overrides: dict[str, Any] = {"data_dir": data_dir} if data_dir else {}
    settings = load_settings(config_path, overrides)
    if log_level:
        settings.log_level = log_level
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    ctx.obj = settings


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

@cli.group()
def profile() -> None:
    """Manage webhook profiles."""


@profile.command("list")
@click.pass_obj
def profile_list(settings: Settings) -> None:
    async def go(app: HookpostApp) -> None:
        if not app.store.profiles:
            click.echo("No profiles. Create one with `hookpost profile add`.")
            return
        for i, p in enumerate(app.store.profiles, start=1):
            marker = "*" if p.id == app.store.active_id else " "
            click.echo(f"{marker} {i}. {p.name} ({p.id}) - {len(p.messages)} message(s)")

    _run(settings, go)


@profile.command("add")
@click.option("--name", default=None)
@click.option("--nickname", default="")
@click.option("--url", default=None)
@click.pass_obj
def profile_add(settings: Settings, name: str | None, nickname: str, url: str | None) -> None:
    """Create a profile; prompts for the fields when --name and --url are missing."""

    async def go(app: HookpostApp) -> Profile | None:
        if name is not None and url is not None:
            return await app.create_profile(ProfileFields(name=name, nickname=nickname, url=url))
        return await app.add_profile()

    created = _run(settings, go)
    if created is None:
        click.echo("Cancelled.")
    else:
        click.secho(f"Created profile {created.name} ({created.id})", fg="green")


@profile.command("edit")
@click.argument("ref")
@click.pass_obj
def profile_edit(settings: Settings, ref: str) -> None:
    async def go(app: HookpostApp) -> Profile | None:
        return await app.edit_profile(app.resolve_profile(ref).id)

    updated = _run(settings, go)
    if updated is None:
        click.echo("Cancelled.")
    else:
        click.secho(f"Updated profile {updated.name}", fg="green")


@profile.command("rm")
@click.argument("ref")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def profile_rm(settings: Settings, ref: str, yes: bool) -> None:
    async def go(app: HookpostApp) -> bool:
        return await app.delete_profile(app.resolve_profile(ref).id, confirm=not yes)

    if _run(settings, go):
        click.secho("Profile deleted", fg="green")
    else:
        click.echo("Cancelled.")


@profile.command("use")
@click.argument("ref")
@click.pass_obj
def profile_use(settings: Settings, ref: str) -> None:
    """Switch the active profile and sync its history."""

    async def go(app: HookpostApp) -> str:
        target = app.resolve_profile(ref)
        report = await app.switch_profile(target.id)
        return f"Active profile: {target.name}. {report.summary}"

    click.echo(_run(settings, go))


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("text", nargs=-1, required=True)
@profile_option
@click.pass_obj
def send(settings: Settings, text: tuple[str, ...], profile_ref: str | None) -> None:
    """Send a plain text message."""
    compose = ComposeState(mode=ComposeMode.TEXT, text=" ".join(text))
    _report(_run(settings, lambda app: app.send(compose, profile_ref)))


@cli.command()
@click.option("--title", default="")
@click.option("--description", default="")
@click.option("--color", default=None, help="Sidebar colour as #rrggbb (default from config)")
@profile_option
@click.pass_obj
def embed(
    settings: Settings, title: str, description: str, color: str | None, profile_ref: str | None
) -> None:
    """Send an embed message."""
    compose = ComposeState(
        mode=ComposeMode.EMBED,
        title=title,
        description=description,
        color=color or settings.compose.default_color,
    )
    _report(_run(settings, lambda app: app.send(compose, profile_ref)))


@cli.command()
@profile_option
@click.pass_obj
def sync(settings: Settings, profile_ref: str | None) -> None:
    """Refresh cached messages from the webhook."""

    async def go(app: HookpostApp) -> str:
        return (await app.sync(profile_ref)).summary

    click.echo(_run(settings, go))


@cli.command("import")
@click.argument("message_id", required=False)
@profile_option
@click.pass_obj
def import_(settings: Settings, message_id: str | None, profile_ref: str | None) -> None:
    """Track an existing webhook message by id."""
    result = _run(settings, lambda app: app.import_message(message_id, profile_ref))
    if result is not None and not result.success:
        raise click.exceptions.Exit(1)


@cli.command()
@click.argument("message_id")
@click.option("--content", default=None, help="New text content")
@click.option("--title", default=None, help="New embed title")
@click.option("--description", default=None, help="New embed description")
@profile_option
@click.pass_obj
def edit(
    settings: Settings,
    message_id: str,
    content: str | None,
    title: str | None,
    description: str | None,
    profile_ref: str | None,
) -> None:
    """Edit a tracked message; prompts when no new values are given."""
    fields: EditFields | None = None
    if content is not None:
        fields = EditFields(content=content)
    elif title is not None or description is not None:
        fields = EditFields(title=title or "", description=description or "")
    _report(_run(settings, lambda app: app.edit_message(message_id, fields, profile_ref)))


@cli.command()
@click.argument("message_id")
@profile_option
@click.pass_obj
def rm(settings: Settings, message_id: str, profile_ref: str | None) -> None:
    """Delete a tracked message."""
    _report(_run(settings, lambda app: app.delete_message(message_id, profile_ref)))


@cli.command()
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@profile_option
@click.pass_obj
def clear(settings: Settings, yes: bool, profile_ref: str | None) -> None:
    """Delete every tracked message."""

    async def go(app: HookpostApp) -> str:
        report = await app.delete_all(profile_ref, confirm=not yes)
        return "Cancelled." if report is None else report.summary

    click.echo(_run(settings, go))


@cli.command()
@click.option("--search", "query", default="", help="Only show messages containing this text")
@profile_option
@click.pass_obj
def history(settings: Settings, query: str, profile_ref: str | None) -> None:
    """Show the cached message history."""

    async def go(app: HookpostApp) -> list[str]:
        target = app.resolve_profile(profile_ref)
        return [_render(target, m) for m in app.search(query, target.id)]

    rendered = _run(settings, go)
    if not rendered:
        click.echo("No messages.")
    for block in rendered:
        click.echo(block)
        click.echo()


@cli.command()
@profile_option
@click.pass_obj
def colors(settings: Settings, profile_ref: str | None) -> None:
    """List recently used embed colours."""

    async def go(app: HookpostApp) -> tuple[str, ...]:
        return app.resolve_profile(profile_ref).color_history

    used = _run(settings, go)
    if not used:
        click.echo("No colours used yet.")
    for c in used:
        click.echo(click.style("██", fg=_rgb(color_to_int(c))) + f" {c}")


if __name__ == "__main__":
    cli()
