"""
Feature extraction pipeline.

Runs the two independent sub-extractions for an image:
    1. Color: palette -> top-5 swatches -> 15-d Lab vector -> distinctiveness
    2. Text: embedding of the place text (or the query text)

Both are dispatched concurrently and always joined together. A failure
or timeout in one never cancels the other; it only makes its fields
absent from the resulting FeatureRecord.
"""

import os
import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from .color_space import rgb_to_lab
from .color_vector import build_color_vector, select_top_swatches
from .distinctiveness import classify_distinctiveness
from .embeddings import EmbeddingProvider, build_place_text
from .palette import PaletteExtractor
from .types import Distinctiveness, FeatureRecord, Outcome, Place, Swatch

logger = logging.getLogger(__name__)

EXTRACTION_TIMEOUT = float(os.environ.get("COLORWALK_EXTRACTION_TIMEOUT", "15"))


@dataclass(frozen=True)
class ColorFeatures:
    palette: tuple
    color_vector: tuple
    distinctiveness: Distinctiveness


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of one extraction attempt."""

    record: FeatureRecord
    color: Outcome
    text: Outcome

    @property
    def failed(self) -> bool:
        """True when neither sub-extraction produced anything."""
        return not (self.color.ok or self.text.ok)


class FeaturePipeline:
    """
    Best-effort color + text feature extraction.

    Safe to share between threads: every call builds its own record on
    its own pair of worker threads, so a hung call in one extraction
    never delays another.
    """

    def __init__(self,
                 palette_extractor: PaletteExtractor,
                 embedding_provider: Optional[EmbeddingProvider],
                 timeout: float = None):
        """
        Args:
            palette_extractor: Backend returning candidate swatches.
            embedding_provider: Backend for text embeddings. None disables
                text extraction entirely.
            timeout: Seconds allowed for each sub-extraction.
        """
        self.palette_extractor = palette_extractor
        self.embedding_provider = embedding_provider
        self.timeout = EXTRACTION_TIMEOUT if timeout is None else timeout

    def extract(self, image_ref: Any, text: Optional[str] = None) -> ExtractionResult:
        """
        Extract color and text features concurrently.

        Args:
            image_ref: Anything the palette extractor accepts.
            text: Text to embed. Empty or None skips text extraction.

        Returns:
            ExtractionResult whose record holds only successful fields.
        """
        # One worker per sub-extraction: both start immediately, so the
        # deadline only covers the work itself
        pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="colorwalk-extract")
        try:
            color_future = pool.submit(self._extract_color, image_ref)
            text_future = None
            if text and text.strip() and self.embedding_provider is not None:
                text_future = pool.submit(self._extract_text, text)

            pending = [f for f in (color_future, text_future) if f is not None]
            wait(pending, timeout=self.timeout)
        finally:
            # Timed-out calls keep running on their own thread; nothing waits on them
            pool.shutdown(wait=False)

        color = self._collect(color_future, "color")
        if text_future is None:
            text_outcome = Outcome.absent("no text to embed")
        else:
            text_outcome = self._collect(text_future, "text")

        record = self._combine(color, text_outcome)
        if color.ok or text_outcome.ok:
            logger.debug(
                f"Extraction finished: color={'ok' if color.ok else color.reason}, "
                f"text={'ok' if text_outcome.ok else text_outcome.reason}"
            )
        else:
            logger.warning(
                f"Extraction produced no features: color={color.reason}; "
                f"text={text_outcome.reason}"
            )
        return ExtractionResult(record=record, color=color, text=text_outcome)

    def extract_for_place(self, place: Place) -> ExtractionResult:
        text = build_place_text(place.title, place.description, place.address)
        return self.extract(place.image, text)

    def extract_for_query(self, image: Any, query_text: Optional[str] = None) -> ExtractionResult:
        return self.extract(image, query_text)

    def _collect(self, future, name: str) -> Outcome:
        if not future.done():
            future.cancel()
            logger.warning(f"{name} extraction timed out after {self.timeout}s")
            return Outcome.absent(f"timed out after {self.timeout}s")
        try:
            return future.result()
        except Exception as e:
            logger.warning(f"{name} extraction failed: {e}")
            return Outcome.absent(str(e) or type(e).__name__)

    def _extract_color(self, image_ref: Any) -> Outcome:
        candidates = self.palette_extractor.extract(image_ref)
        if not candidates:
            return Outcome.absent("no swatches extracted")

        top = select_top_swatches(candidates)
        palette = tuple(
            Swatch(hex=s.hex, rgb=tuple(s.rgb), population=s.population,
                   lab=rgb_to_lab(*s.rgb))
            for s in top
        )
        vector = build_color_vector(palette)
        distinctiveness = classify_distinctiveness(palette, vector)
        return Outcome.success(ColorFeatures(
            palette=palette,
            color_vector=tuple(vector),
            distinctiveness=distinctiveness,
        ))

    def _extract_text(self, text: str) -> Outcome:
        vector = self.embedding_provider.embed_text(text.strip())
        if not vector:
            return Outcome.absent("empty embedding returned")
        return Outcome.success(tuple(float(v) for v in vector))

    @staticmethod
    def _combine(color: Outcome, text: Outcome) -> FeatureRecord:
        fields = {}
        if color.ok:
            fields.update(
                palette=color.value.palette,
                color_vector=color.value.color_vector,
                distinctiveness=color.value.distinctiveness,
            )
        if text.ok:
            fields["text_embedding"] = text.value
        if fields:
            fields["extracted_at"] = datetime.now(timezone.utc)
        return FeatureRecord(**fields)
