"""
Operator-triggered backfill and pipeline health report.

Background enrichment is attempted exactly once per place and is never
retried automatically. This module is the explicit way to fill in
places whose attempt failed, and to check how well the pipeline is
populating feature records.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from .extraction import FeaturePipeline
from .store import PlaceStore
from .types import COLOR_VECTOR_DIM, Distinctiveness

logger = logging.getLogger(__name__)


def backfill_features(store: PlaceStore,
                      pipeline: FeaturePipeline,
                      place_ids: Optional[Iterable[str]] = None,
                      only_missing: bool = True) -> Dict[str, Any]:
    """
    Run extraction synchronously over stored places.

    Args:
        store: Place store to read from and merge into.
        pipeline: Extraction pipeline.
        place_ids: Places to process (defaults to all places).
        only_missing: Skip places that already have any feature.

    Returns:
        Dict with 'processed', 'enriched', 'failed', 'skipped' counts.
    """
    if place_ids is None:
        places = store.all_places()
    else:
        places = [store.get(pid) for pid in place_ids]

    processed = enriched = failed = skipped = 0

    logger.info(f"Backfilling features for {len(places)} places")

    for place in places:
        if only_missing and not place.features.is_empty:
            skipped += 1
            continue

        processed += 1
        try:
            result = pipeline.extract_for_place(place)
        except Exception as e:
            logger.warning(f"Failed to process place {place.id}: {e}")
            failed += 1
            continue

        if result.failed:
            failed += 1
            continue

        store.update_features(place.id, result.record.to_update())
        enriched += 1

    logger.info(
        f"Backfill done: {processed} processed, {enriched} enriched, "
        f"{failed} failed, {skipped} skipped"
    )

    return {
        "processed": processed,
        "enriched": enriched,
        "failed": failed,
        "skipped": skipped,
    }


def enrichment_report(store: PlaceStore,
                      place_ids: Optional[Iterable[str]] = None,
                      embedding_dim: Optional[int] = None) -> Dict[str, Any]:
    """
    Summarize how many places carry each feature.

    Args:
        store: Place store.
        place_ids: Places to include (defaults to all).
        embedding_dim: If given, only embeddings of this length count.

    Returns:
        Dict of counts and success rates (percent, rounded).
    """
    if place_ids is None:
        places = store.all_places()
    else:
        places = [store.get(pid) for pid in place_ids]

    total = len(places)
    with_color = with_text = colorful = palette_colors = 0

    for place in places:
        features = place.features
        if features.color_vector is not None and len(features.color_vector) == COLOR_VECTOR_DIM:
            with_color += 1
        if features.text_embedding is not None and (
                embedding_dim is None or len(features.text_embedding) == embedding_dim):
            with_text += 1
        if features.distinctiveness is Distinctiveness.DISTINCTIVE:
            colorful += 1
        palette_colors += len(features.palette or ())

    def rate(n):
        return round(100 * n / total) if total else 0

    return {
        "total": total,
        "with_color_vector": with_color,
        "with_text_embedding": with_text,
        "colorful": colorful,
        "avg_palette_colors": round(palette_colors / total, 1) if total else 0.0,
        "color_success_rate": rate(with_color),
        "embedding_success_rate": rate(with_text),
    }
