"""
Place store: where feature records are read from and merged into.

Place CRUD belongs to the host application. colorwalk only needs to
read candidates and write field-level partial updates of the feature
record, never a full-document overwrite.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .errors import PlaceNotFoundError
from .types import FeatureRecord, Place

logger = logging.getLogger(__name__)


class PlaceStore(ABC):
    """Abstract interface for the host application's place storage."""

    @abstractmethod
    def add(self, place: Place) -> Place:
        """Persist a newly created place."""

    @abstractmethod
    def get(self, place_id: str) -> Place:
        """Fetch one place. Raises PlaceNotFoundError."""

    @abstractmethod
    def delete(self, place_id: str) -> None:
        """Remove a place together with its feature record."""

    @abstractmethod
    def all_places(self, owner_id: Optional[str] = None) -> List[Place]:
        """All places in insertion order, optionally for one owner."""

    @abstractmethod
    def update_features(self, place_id: str, fields: Dict[str, Any]) -> FeatureRecord:
        """Merge the given feature fields; returns the stored record."""

    def list_candidates(self, owner_id: Optional[str] = None) -> List[Place]:
        """Places with at least a color vector or a text embedding."""
        return [p for p in self.all_places(owner_id) if not p.features.is_empty]


class InMemoryPlaceStore(PlaceStore):
    """Thread-safe dict-backed store, insertion ordered."""

    def __init__(self):
        self._places: Dict[str, Place] = {}
        self._lock = threading.Lock()

    def add(self, place: Place) -> Place:
        with self._lock:
            if place.id in self._places:
                raise ValueError(f"Place {place.id} already exists")
            self._places[place.id] = place
        return place

    def get(self, place_id: str) -> Place:
        with self._lock:
            place = self._places.get(place_id)
        if place is None:
            raise PlaceNotFoundError(f"No place with id {place_id}")
        return place

    def delete(self, place_id: str) -> None:
        with self._lock:
            if self._places.pop(place_id, None) is None:
                raise PlaceNotFoundError(f"No place with id {place_id}")

    def all_places(self, owner_id: Optional[str] = None) -> List[Place]:
        with self._lock:
            places = list(self._places.values())
        if owner_id is not None:
            places = [p for p in places if p.creator_id == owner_id]
        return places

    def update_features(self, place_id: str, fields: Dict[str, Any]) -> FeatureRecord:
        with self._lock:
            place = self._places.get(place_id)
            if place is None:
                raise PlaceNotFoundError(f"No place with id {place_id}")
            place.features = place.features.merged(fields)
            record = place.features
        logger.debug(f"Merged {sorted(fields)} into place {place_id}")
        return record

    def __len__(self):
        with self._lock:
            return len(self._places)
