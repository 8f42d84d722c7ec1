"""Per-profile operation guard.

Two lanes per profile: the sync lane covers reconcile, import and bulk
delete; the mutation lane covers send. A lane is held for the whole
operation and released on every exit path.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum

from hookpost.errors import OperationInFlight
from hookpost.utils.logging import get_logger

log = get_logger(__name__)


class OperationState(str, Enum):
    IDLE = "idle"
    SYNC_IN_FLIGHT = "sync_in_flight"
    MUTATION_IN_FLIGHT = "mutation_in_flight"


class Lane(str, Enum):
    SYNC = "sync"
    MUTATION = "mutation"


_BUSY_STATE = {
    Lane.SYNC: OperationState.SYNC_IN_FLIGHT,
    Lane.MUTATION: OperationState.MUTATION_IN_FLIGHT,
}


class OperationGuard:
    def __init__(self) -> None:
        # (profile_id, lane) -> name of the operation holding it
        self._held: dict[tuple[str, Lane], str] = {}

    def state(self, profile_id: str, lane: Lane) -> OperationState:
        if (profile_id, lane) in self._held:
            return _BUSY_STATE[lane]
        return OperationState.IDLE

    def is_busy(self, profile_id: str, lane: Lane) -> bool:
        return self.state(profile_id, lane) is not OperationState.IDLE

    @asynccontextmanager
    async def hold(self, profile_id: str, lane: Lane, operation: str) -> AsyncIterator[None]:
        key = (profile_id, lane)
        holder = self._held.get(key)
        if holder is not None:
            log.info(
                "operation_rejected",
                profile=profile_id,
                lane=lane.value,
                operation=operation,
                held_by=holder,
            )
            raise OperationInFlight(profile_id, lane.value)
        self._held[key] = operation
        try:
            yield
        finally:
            del self._held[key]
