"""Abstract remote channel client."""

from __future__ import annotations

from abc import ABC, abstractmethod

from hookpost.models import Payload


class ChannelClient(ABC):
    """Fetch/create/patch/delete against one webhook endpoint.

    Implementations raise ``RemoteNotFound`` when the endpoint reports the
    message is gone and ``RemoteFailure`` for every other unsuccessful call.
    """

    @abstractmethod
    async def fetch_message(self, url: str, message_id: str) -> Payload: ...

    @abstractmethod
    async def create_message(self, url: str, payload: Payload) -> str:
        """Post a message and return the id the endpoint assigned to it."""
        ...

    @abstractmethod
    async def patch_message(self, url: str, message_id: str, payload: Payload) -> None: ...

    @abstractmethod
    async def delete_message(self, url: str, message_id: str) -> None: ...

    async def aclose(self) -> None:
        return None
