"""
Storage Services Package

Provides the abstract trip storage interface and its implementations:
in-memory, and local JSON files for when no hosted store is configured.
"""

from typing import Optional

from seoulmate.config import TripSettings, get_settings
from seoulmate.services.storage.interface import (
    EXPENSES,
    MEMBERS,
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    StorageError,
    TripStorageInterface,
)
from seoulmate.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryTripStorage,
)
from seoulmate.services.storage.local_json import LocalJsonTripStorage


def create_trip_storage(settings: Optional[TripSettings] = None) -> TripStorageInterface:
    """Build the storage backend selected by TRIP_STORAGE_BACKEND."""
    settings = settings or get_settings().trip
    if settings.storage_backend == "local":
        return LocalJsonTripStorage(settings.data_dir, settings.trip_id)
    return InMemoryTripStorage()


__all__ = [
    # Collections
    "EXPENSES",
    "MEMBERS",
    # Interfaces
    "AuditStorageInterface",
    "TripStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryTripStorage",
    "LocalJsonTripStorage",
    "create_trip_storage",
]
