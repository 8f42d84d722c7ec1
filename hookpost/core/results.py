"""Outcome types returned by engine operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from hookpost.models import Message


@dataclass
class OperationResult:
    success: bool
    output: str = ""
    error: str = ""
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class SyncReport:
    profile_id: str
    messages: tuple[Message, ...] = ()
    updated: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: bool = False
    reason: str = ""

    @property
    def summary(self) -> str:
        if self.skipped:
            return f"Sync skipped: {self.reason}"
        return (
            f"Synced {len(self.messages)} message(s): {len(self.updated)} refreshed, "
            f"{len(self.dropped)} removed upstream, {len(self.failed)} unreachable"
        )


@dataclass
class BulkReport:
    profile_id: str
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: bool = False
    reason: str = ""

    @property
    def summary(self) -> str:
        if self.skipped:
            return f"Delete skipped: {self.reason}"
        text = f"Cleared {len(self.deleted) + len(self.failed)} message(s) from history"
        if self.failed:
            text += f" ({len(self.failed)} remote delete(s) failed)"
        return text
