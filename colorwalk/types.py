"""
Core data types: swatches, feature records, places, and extraction outcomes.

A FeatureRecord is the color/text fingerprint attached to a place. Every
field is independently optional: partial extraction is a valid state,
and a partial update never erases a field that is already present.
"""

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .color_space import rgb_to_hex

COLOR_VECTOR_DIM = 15

FEATURE_FIELDS = (
    "palette",
    "color_vector",
    "distinctiveness",
    "text_embedding",
    "extracted_at",
)


class Distinctiveness(enum.Enum):
    """Whether an image's color signal is trustworthy for ranking."""

    DISTINCTIVE = "distinctive"
    NOT_DISTINCTIVE = "not_distinctive"
    UNANALYZED = "unanalyzed"

    @classmethod
    def from_flag(cls, flag: Optional[bool]) -> "Distinctiveness":
        if flag is None:
            return cls.UNANALYZED
        return cls.DISTINCTIVE if flag else cls.NOT_DISTINCTIVE

    def as_flag(self) -> Optional[bool]:
        """True / False / None, the `isColorful` shape used on the wire."""
        if self is Distinctiveness.UNANALYZED:
            return None
        return self is Distinctiveness.DISTINCTIVE


@dataclass(frozen=True)
class Swatch:
    """One dominant color and its relative prevalence in the source image."""

    hex: str
    rgb: Tuple[int, int, int]
    population: int
    lab: Optional[Tuple[float, float, float]] = None


@dataclass(frozen=True)
class FeatureRecord:
    """Visual and semantic fingerprint of a place (or of a search query)."""

    palette: Optional[Tuple[Swatch, ...]] = None
    color_vector: Optional[Tuple[float, ...]] = None
    distinctiveness: Distinctiveness = Distinctiveness.UNANALYZED
    text_embedding: Optional[Tuple[float, ...]] = None
    extracted_at: Optional[datetime] = None

    def __post_init__(self):
        if self.color_vector is not None and len(self.color_vector) != COLOR_VECTOR_DIM:
            raise ValueError(
                f"color_vector must have {COLOR_VECTOR_DIM} values, "
                f"got {len(self.color_vector)}"
            )
        if self.distinctiveness is Distinctiveness.DISTINCTIVE and (
                not self.palette or self.color_vector is None):
            raise ValueError("A distinctive record needs a palette and a color vector")

    @property
    def has_color(self) -> bool:
        return self.color_vector is not None

    @property
    def has_text(self) -> bool:
        return self.text_embedding is not None

    @property
    def is_empty(self) -> bool:
        return not (self.has_color or self.has_text)

    def to_update(self) -> Dict[str, Any]:
        """Only the fields that are present, for a field-level partial update."""
        update = {}
        for name in FEATURE_FIELDS:
            value = getattr(self, name)
            if value is None or value is Distinctiveness.UNANALYZED:
                continue
            update[name] = value
        return update

    def merged(self, update: Dict[str, Any]) -> "FeatureRecord":
        """Apply a partial update; absent values never overwrite present ones."""
        unknown = set(update) - set(FEATURE_FIELDS)
        if unknown:
            raise ValueError(f"Not feature fields: {sorted(unknown)}")
        changes = {
            k: v for k, v in update.items()
            if v is not None and v is not Distinctiveness.UNANALYZED
        }
        return replace(self, **changes)


@dataclass(frozen=True)
class Outcome:
    """Result of one sub-extraction: a value, or an explicit absence."""

    value: Any = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, value: Any) -> "Outcome":
        return cls(value=value)

    @classmethod
    def absent(cls, reason: str) -> "Outcome":
        return cls(reason=reason)

    @property
    def ok(self) -> bool:
        return self.reason is None


@dataclass
class Place:
    """A saved place. Only `features` is owned by colorwalk."""

    id: str
    title: str
    description: str
    address: str
    image: Any
    creator_id: Optional[str] = None
    features: FeatureRecord = field(default_factory=FeatureRecord)

    def summary(self) -> Dict[str, Any]:
        """Public view of the place. Never includes raw vectors."""
        palette = self.features.palette or ()
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "address": self.address,
            "image": self.image if isinstance(self.image, str) else None,
            "creator_id": self.creator_id,
            "palette": [s.hex for s in palette],
            "is_colorful": self.features.distinctiveness.as_flag(),
        }


def swatches_from_dicts(items: List[Dict[str, Any]]) -> List[Swatch]:
    """Build swatches from plain dicts with `rgb` and `population` keys."""
    swatches = []
    for item in items:
        rgb = tuple(int(round(c)) for c in item["rgb"])
        swatches.append(Swatch(
            hex=item.get("hex") or rgb_to_hex(rgb),
            rgb=rgb,
            population=int(item.get("population", 0)),
        ))
    return swatches
