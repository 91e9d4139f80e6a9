"""Services package."""

from seoulmate.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryTripStorage,
    LocalJsonTripStorage,
    NotFoundError,
    StorageError,
    TripStorageInterface,
    create_trip_storage,
)

__all__ = [
    "AuditStorageInterface",
    "DuplicateError",
    "InMemoryAuditStorage",
    "InMemoryTripStorage",
    "LocalJsonTripStorage",
    "NotFoundError",
    "StorageError",
    "TripStorageInterface",
    "create_trip_storage",
]
