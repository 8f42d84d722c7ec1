"""Exception hierarchy for remote, validation and guard failures."""

from __future__ import annotations


class HookpostError(Exception):
    """Base class for all hookpost errors."""


class RemoteError(HookpostError):
    """A call against the remote webhook endpoint did not succeed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemoteNotFound(RemoteError):
    """The remote resource no longer exists."""


class RemoteFailure(RemoteError):
    """Network, timeout or non-specific HTTP failure."""


class ValidationFailure(HookpostError):
    """Input rejected before any remote call was attempted."""

    def __init__(self, message: str, field: str = "") -> None:
        super().__init__(message)
        self.field = field


class OperationInFlight(HookpostError):
    """A conflicting operation is already running for the profile."""

    def __init__(self, profile_id: str, lane: str) -> None:
        super().__init__(f"A {lane} operation is already in progress for this profile")
        self.profile_id = profile_id
        self.lane = lane


class ProfileNotFound(HookpostError):
    def __init__(self, profile_id: str) -> None:
        super().__init__(f"Profile not found: {profile_id}")
        self.profile_id = profile_id
