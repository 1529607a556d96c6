"""Tests for background enrichment after place creation."""

import threading

import pytest

from colorwalk.enrichment import EnrichmentScheduler, create_place
from colorwalk.extraction import FeaturePipeline
from colorwalk.store import InMemoryPlaceStore
from colorwalk.types import Distinctiveness, FeatureRecord, Place

from stubs import (
    FailingEmbeddingProvider, FailingPaletteExtractor,
    StubEmbeddingProvider, StubPaletteExtractor,
)


def new_place(place_id="p1", **features):
    return Place(id=place_id, title="Fjord Lookout", description="Cold blue water",
                 address="Geiranger, Norway", image=f"https://cdn.example/{place_id}.jpg",
                 creator_id="u1", features=FeatureRecord(**features))


@pytest.fixture
def store():
    return InMemoryPlaceStore()


@pytest.fixture
def scheduler_for(store):
    created = []

    def factory(extractor, provider):
        pipeline = FeaturePipeline(extractor, provider, timeout=2.0)
        scheduler = EnrichmentScheduler(store, pipeline, workers=2).start()
        created.append(scheduler)
        return scheduler

    yield factory
    for scheduler in created:
        scheduler.shutdown()


class TestCreatePlace:
    """Tests for response-then-schedule ordering."""

    def test_response_precedes_enrichment(self, store, scheduler_for, red_blue_swatches):
        extractor = StubPaletteExtractor(red_blue_swatches)
        scheduler = scheduler_for(extractor, StubEmbeddingProvider())
        seen_at_response = {}

        def respond(place):
            seen_at_response["scheduled"] = scheduler.stats["scheduled"]
            seen_at_response["calls"] = len(extractor.calls)
            seen_at_response["features_empty"] = store.get(place.id).features.is_empty

        create_place(store, scheduler, new_place(), respond)
        scheduler.wait()

        assert seen_at_response == {"scheduled": 0, "calls": 0, "features_empty": True}
        assert extractor.calls == ["https://cdn.example/p1.jpg"]

    def test_creation_does_not_wait_for_extraction(self, store, scheduler_for, red_blue_swatches):
        gate = threading.Event()

        class GatedExtractor(StubPaletteExtractor):
            def extract(self, image_ref):
                gate.wait(5)
                return super().extract(image_ref)

        scheduler = scheduler_for(GatedExtractor(red_blue_swatches), StubEmbeddingProvider())

        place = create_place(store, scheduler, new_place())

        assert store.get(place.id).features.is_empty
        gate.set()
        scheduler.wait()
        assert store.get(place.id).features.has_color

    def test_enrichment_populates_record(self, store, scheduler_for, red_blue_swatches):
        provider = StubEmbeddingProvider(default=[0.2, 0.4, 0.6, 0.8])
        scheduler = scheduler_for(StubPaletteExtractor(red_blue_swatches), provider)

        create_place(store, scheduler, new_place())
        scheduler.wait()

        features = store.get("p1").features
        assert len(features.color_vector) == 15
        assert features.distinctiveness is Distinctiveness.DISTINCTIVE
        assert features.text_embedding == (0.2, 0.4, 0.6, 0.8)
        assert features.extracted_at is not None
        assert provider.texts == [
            "Fjord Lookout. located at Geiranger, Norway. Cold blue water"
        ]
        assert scheduler.stats["enriched"] == 1

    def test_exactly_one_attempt(self, store, scheduler_for):
        extractor = FailingPaletteExtractor()
        provider = FailingEmbeddingProvider()
        scheduler = scheduler_for(extractor, provider)

        create_place(store, scheduler, new_place())
        scheduler.wait()

        assert len(extractor.calls) == 1
        assert len(provider.texts) == 1

    def test_total_failure_is_absorbed(self, store, scheduler_for):
        scheduler = scheduler_for(FailingPaletteExtractor(), FailingEmbeddingProvider())
        responses = []

        place = create_place(store, scheduler, new_place(), responses.append)
        scheduler.wait()

        assert responses == [place]
        assert store.get("p1") is place
        assert place.features.is_empty
        assert scheduler.stats["failed"] == 1

    def test_partial_success_keeps_prior_fields(self, store, scheduler_for, red_blue_swatches):
        scheduler = scheduler_for(StubPaletteExtractor(red_blue_swatches),
                                  FailingEmbeddingProvider())
        prior = (0.9, 0.1, 0.0, 0.0)

        create_place(store, scheduler, new_place(text_embedding=prior))
        scheduler.wait()

        features = store.get("p1").features
        assert features.text_embedding == prior
        assert features.has_color
        assert features.distinctiveness is Distinctiveness.DISTINCTIVE
        assert scheduler.stats["partial"] == 1

    def test_deleted_place_is_absorbed(self, store, scheduler_for, red_blue_swatches):
        scheduler = scheduler_for(StubPaletteExtractor(red_blue_swatches), None)

        def respond(place):
            store.delete(place.id)

        create_place(store, scheduler, new_place(), respond)
        scheduler.wait()

        assert scheduler.stats["failed"] == 1
        assert store.all_places() == []

    def test_unexpected_store_error_is_absorbed(self, store, scheduler_for, red_blue_swatches):
        class BrokenStore(InMemoryPlaceStore):
            def update_features(self, place_id, fields):
                raise RuntimeError("write conflict")

        broken = BrokenStore()
        pipeline = FeaturePipeline(StubPaletteExtractor(red_blue_swatches), None, timeout=2.0)
        with EnrichmentScheduler(broken, pipeline, workers=1) as scheduler:
            create_place(broken, scheduler, new_place())
            scheduler.wait()
            assert scheduler.stats["failed"] == 1
        assert broken.get("p1").features.is_empty


class TestEnrichmentScheduler:

    def test_schedule_requires_start(self, store, red_blue_swatches):
        pipeline = FeaturePipeline(StubPaletteExtractor(red_blue_swatches), None)
        scheduler = EnrichmentScheduler(store, pipeline)
        with pytest.raises(RuntimeError):
            scheduler.schedule(new_place())

    def test_many_places_drained(self, store, scheduler_for, red_blue_swatches):
        scheduler = scheduler_for(StubPaletteExtractor(red_blue_swatches), StubEmbeddingProvider())

        for i in range(12):
            create_place(store, scheduler, new_place(f"p{i}"))
        scheduler.wait()

        assert all(p.features.has_color and p.features.has_text for p in store.all_places())
        assert scheduler.stats == {"scheduled": 12, "enriched": 12, "partial": 0, "failed": 0}
