"""
Local JSON Storage Implementation

DESIGN DECISION: When no hosted document store is configured, the trip is
kept in plain JSON files on disk, one file per collection:

    <data_dir>/<trip_id>_members.json
    <data_dir>/<trip_id>_expenses.json

TRADEOFFS:
- Single writer only (no locking across processes)
- Whole collection rewritten on every change (fine for a trip's worth of data)

A file that is missing or cannot be parsed loads as an empty collection,
so a corrupted file never blocks the app from starting.
"""

import json
import os
from pathlib import Path

import structlog
from pydantic import ValidationError

from seoulmate.models.expense import Expense, TripMember
from seoulmate.services.storage.interface import EXPENSES, MEMBERS, StorageError
from seoulmate.services.storage.memory import InMemoryTripStorage


logger = structlog.get_logger(__name__)


class LocalJsonTripStorage(InMemoryTripStorage):
    """In-memory storage mirrored to JSON files after every write."""

    def __init__(self, data_dir: Path, trip_id: str):
        super().__init__()
        self._data_dir = Path(data_dir)
        self._trip_id = trip_id

        for member in self._load(MEMBERS, TripMember):
            self._members[member.id] = member
        # Files hold expenses newest first; restore insertion order.
        for expense in reversed(self._load(EXPENSES, Expense)):
            self._expenses[expense.id] = expense

    def path_for(self, collection: str) -> Path:
        """File backing a collection."""
        return self._data_dir / f"{self._trip_id}_{collection}.json"

    def _load(self, collection: str, model) -> list:
        path = self.path_for(collection)
        if not path.exists():
            return []

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return [model.model_validate(item) for item in raw]
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.warning(
                "local_collection_unreadable",
                path=str(path),
                error=str(e),
            )
            return []

    def _persist(self, collection: str, items: dict) -> None:
        path = self.path_for(collection)
        records = [
            item.model_dump(mode="json")
            for item in self._snapshot(collection, items)
        ]

        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            tmp_path.write_text(
                json.dumps(records, ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    def _commit(self, collection: str, items: dict) -> None:
        # Memory only changes once the file write has succeeded.
        self._persist(collection, items)
        super()._commit(collection, items)
