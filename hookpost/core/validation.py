"""Input validation applied before any remote call is made."""

from __future__ import annotations

import re
from collections.abc import Sequence
from urllib.parse import urlparse

from hookpost.errors import ValidationFailure

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


def validate_webhook_url(
    url: str,
    provider_markers: Sequence[str] = ("discord",),
    path_marker: str = "/api/webhooks/",
) -> str:
    """Check that ``url`` points at a channel webhook. Returns the stripped URL."""
    url = (url or "").strip()
    if not url:
        raise ValidationFailure("Webhook URL is required", field="url")

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValidationFailure("Invalid URL format", field="url")

    host = parsed.hostname.lower()
    if not any(marker.lower() in host for marker in provider_markers):
        raise ValidationFailure("Invalid Discord Webhook URL", field="url")
    if path_marker not in parsed.path:
        raise ValidationFailure("Invalid Discord Webhook URL", field="url")
    return url


def require_field(value: str | None, field: str, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationFailure(f"{label} is required", field=field)
    return value


def normalize_color(color: str) -> str:
    """Return ``color`` as lowercase ``#rrggbb``."""
    m = _HEX_COLOR.match((color or "").strip())
    if not m:
        raise ValidationFailure(f"Invalid colour: {color!r}", field="color")
    return "#" + m.group(1).lower()


def color_to_int(color: str) -> int:
    return int(normalize_color(color)[1:], 16)


def int_to_color(value: int) -> str:
    return f"#{value:06x}"
