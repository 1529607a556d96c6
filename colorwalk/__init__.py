"""
colorwalk — Hybrid color + text similarity search for saved places.

Extracts a dominant-color fingerprint from place photos, pairs it with a
semantic embedding of the place's text, and ranks stored places against
a query photo with adaptive color/text weighting.

Modules:
    engine            Main SearchEngine class
    extraction        Concurrent color + text feature extraction
    enrichment        Background enrichment after place creation
    palette           Dominant-color extraction (OpenCV k-means)
    color_space       RGB -> CIELAB conversion
    color_vector      15-d normalized Lab vector construction
    distinctiveness   "Is this color signal trustworthy" heuristic
    embeddings        Text embedding providers
    scoring           Cosine similarity + adaptive weight fusion
    store             Place store interface and in-memory implementation
    backfill          Operator-triggered backfill and pipeline report
    preprocessing     Image loading and normalization
"""

__version__ = "1.0.0"
