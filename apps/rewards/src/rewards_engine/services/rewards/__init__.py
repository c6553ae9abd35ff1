"""Rewards sync exports."""

from .cache import LocalCacheStore  # noqa: F401
from .client import RewardsApiClient  # noqa: F401
from .errors import (  # noqa: F401
    LocalStorageError,
    MalformedCache,
    ProfileNotLoaded,
    RemoteUnavailable,
    RewardsSyncError,
)
from .store import RewardsStore  # noqa: F401
from .sync import ProfileLoad, ProfileState, ReferenceLoad, SyncCoordinator  # noqa: F401
