"""Typed request/response contract for user prompts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Final, Literal, Union

from hookpost.core.mutations import EditFields


class _Cancelled(Enum):
    CANCELLED = "cancelled"

    def __bool__(self) -> bool:
        return False


CANCELLED: Final = _Cancelled.CANCELLED
Cancelled = Literal[_Cancelled.CANCELLED]


@dataclass(frozen=True)
class ProfileFields:
    name: str = ""
    nickname: str = ""
    url: str = ""


NoticeLevel = Literal["info", "success", "error"]


class Prompter(ABC):
    """User-input collaborator.

    Each prompt returns a result or ``CANCELLED``. Validation of profile
    forms happens in the caller, which re-prompts with ``error`` set.
    """

    @abstractmethod
    async def prompt_profile_form(
        self, existing: ProfileFields | None = None, error: str = ""
    ) -> Union[ProfileFields, Cancelled]: ...

    @abstractmethod
    async def prompt_message_id(self) -> Union[str, Cancelled]: ...

    @abstractmethod
    async def prompt_edit_fields(self, fields: EditFields) -> Union[EditFields, Cancelled]: ...

    @abstractmethod
    async def confirm(self, message: str) -> bool: ...

    @abstractmethod
    async def notify(self, title: str, text: str, level: NoticeLevel = "info") -> None: ...
