"""
Background enrichment of newly created places.

Creating a place must never wait for feature extraction. The creation
response is delivered first; only then is a work item (keyed by place
id) put on a queue that worker threads drain. Each item runs exactly
one extraction attempt and merges whatever succeeded into the stored
feature record. Failures are logged and counted, never raised and never
retried.
"""

import os
import queue
import logging
import threading
from typing import Callable, Dict, Optional

from .errors import PlaceNotFoundError
from .extraction import FeaturePipeline
from .store import PlaceStore
from .types import Place

logger = logging.getLogger(__name__)

ENRICHMENT_WORKERS = int(os.environ.get("COLORWALK_ENRICHMENT_WORKERS", "2"))

_STOP = object()


class EnrichmentScheduler:
    """Queue + worker pool running one extraction per created place."""

    def __init__(self, store: PlaceStore, pipeline: FeaturePipeline,
                 workers: int = None):
        self.store = store
        self.pipeline = pipeline
        self.workers = workers or ENRICHMENT_WORKERS
        self._queue: "queue.Queue" = queue.Queue()
        self._threads = []
        self._stats_lock = threading.Lock()
        self._stats = {"scheduled": 0, "enriched": 0, "partial": 0, "failed": 0}

    @property
    def stats(self) -> Dict[str, int]:
        with self._stats_lock:
            return dict(self._stats)

    def start(self) -> "EnrichmentScheduler":
        if self._threads:
            return self
        for i in range(self.workers):
            thread = threading.Thread(
                target=self._run, name=f"colorwalk-enrich-{i}", daemon=True
            )
            thread.start()
            self._threads.append(thread)
        logger.info(f"Enrichment scheduler started with {self.workers} workers")
        return self

    def schedule(self, place: Place):
        """Queue one enrichment attempt for a place."""
        if not self._threads:
            raise RuntimeError("EnrichmentScheduler.start() has not been called")
        self._bump("scheduled")
        self._queue.put(place.id)

    def wait(self):
        """Block until every queued item has been processed."""
        self._queue.join()

    def shutdown(self, wait: bool = True):
        for _ in self._threads:
            self._queue.put(_STOP)
        if wait:
            for thread in self._threads:
                thread.join()
        self._threads = []

    def __enter__(self):
        return self.start()

    def __exit__(self, *exc):
        self.shutdown()

    def _run(self):
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._enrich(item)
            finally:
                self._queue.task_done()

    def _enrich(self, place_id: str):
        try:
            place = self.store.get(place_id)
            result = self.pipeline.extract_for_place(place)
            if result.failed:
                logger.warning(
                    f"Enrichment for place {place_id} produced no features: "
                    f"color={result.color.reason}; text={result.text.reason}"
                )
                self._bump("failed")
                return

            update = result.record.to_update()
            self.store.update_features(place_id, update)
            self._bump("enriched" if result.color.ok and result.text.ok else "partial")
            logger.info(f"Enrichment stored for place {place_id}: {sorted(update)}")
        except PlaceNotFoundError:
            logger.warning(f"Place {place_id} was deleted before enrichment ran")
            self._bump("failed")
        except Exception:
            logger.exception(f"Enrichment for place {place_id} failed")
            self._bump("failed")

    def _bump(self, key: str):
        with self._stats_lock:
            self._stats[key] += 1


def create_place(store: PlaceStore,
                 scheduler: EnrichmentScheduler,
                 place: Place,
                 respond: Optional[Callable[[Place], None]] = None) -> Place:
    """
    Persist a place, answer the creator, then schedule enrichment.

    `respond` delivers the creation response; enrichment is scheduled
    only after it returns, so a client re-reading the place can never
    race the background work. Enrichment never rolls back the creation.
    """
    store.add(place)
    if respond is not None:
        respond(place)
    try:
        scheduler.schedule(place)
    except Exception:
        logger.exception(f"Could not schedule enrichment for place {place.id}")
    return place
