"""Infrastructure failures raised by the rewards sync layer."""

from __future__ import annotations


class RewardsSyncError(RuntimeError):
    """Base error for remote and local persistence faults."""

    def __init__(self, message: str, code: str = "sync_failed") -> None:
        super().__init__(message)
        self.code = code


class RemoteUnavailable(RewardsSyncError):
    """The remote rewards authority could not be reached or answered badly."""

    def __init__(self, message: str, code: str = "remote_unavailable", status_code: int | None = None) -> None:
        super().__init__(message, code)
        self.status_code = status_code


class MalformedCache(RewardsSyncError):
    def __init__(self, message: str, code: str = "malformed_cache") -> None:
        super().__init__(message, code)


class LocalStorageError(RewardsSyncError):
    def __init__(self, message: str, code: str = "local_storage_failed") -> None:
        super().__init__(message, code)


class ProfileNotLoaded(RewardsSyncError):
    def __init__(self, message: str = "Rewards profile has not been loaded", code: str = "profile_not_loaded") -> None:
        super().__init__(message, code)


__all__ = [
    "LocalStorageError",
    "MalformedCache",
    "ProfileNotLoaded",
    "RemoteUnavailable",
    "RewardsSyncError",
]
