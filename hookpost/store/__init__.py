"""Profile state and its persistence."""

from hookpost.store.base import ProfilePersistence
from hookpost.store.profiles import ProfileStore
from hookpost.store.sqlite import SqlitePersistence

__all__ = [
    "ProfilePersistence",
    "ProfileStore",
    "SqlitePersistence",
]
