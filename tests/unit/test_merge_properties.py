"""
Property tests for merge and percentage invariants.

- Upsert is idempotent.
- Distinct-id batches produce the same ordered content in any order.
- Iteration is always most-recent-first.
- Percentages sum to 100 whenever there is any weight.
"""

from datetime import datetime, timedelta

from hypothesis import given, settings
from hypothesis import strategies as st

from smartbin.domain.services.stats_projector import split_percentages
from smartbin.infrastructure.stores import RecordStore
from smartbin.models.record import (
    ClassificationRecord,
    CorrectionStatus,
    RecordStatus,
    WasteLabel,
)

EPOCH = datetime(2025, 10, 13)

records = st.builds(
    lambda record_id, minutes, label, confidence, correction: ClassificationRecord(
        id=record_id,
        image_ref=f"http://bin.local/uploads/{record_id}.jpg",
        label=label,
        confidence=confidence,
        date_text="13/10/2025",
        time_text="09:00:00",
        captured_at=EPOCH + timedelta(minutes=minutes),
        processing_time_ms=100.0,
        model_version="v1",
        status=RecordStatus.SUCCESS,
        correction_status=correction,
    ),
    record_id=st.integers(min_value=1, max_value=500),
    minutes=st.integers(min_value=0, max_value=30),  # Narrow range forces timestamp ties
    label=st.sampled_from(WasteLabel),
    confidence=st.floats(min_value=0, max_value=100, allow_nan=False),
    correction=st.sampled_from(CorrectionStatus),
)

distinct_batches = st.lists(records, max_size=25, unique_by=lambda r: r.id)

weights = st.floats(min_value=0, max_value=1e6, allow_nan=False, allow_infinity=False)


class TestStoreProperties:
    @given(batch=distinct_batches)
    def test_upsert_twice_is_noop(self, batch):
        store = RecordStore()
        store.upsert_many(batch)
        snapshot = store.all()

        assert store.upsert_many(batch) == 0
        assert store.all() == snapshot

    @given(batch=distinct_batches, data=st.data())
    @settings(max_examples=50)
    def test_application_order_irrelevant(self, batch, data):
        shuffled = data.draw(st.permutations(batch))
        first, second = RecordStore(), RecordStore()
        first.upsert_many(batch)
        second.upsert_many(shuffled)

        assert first.all() == second.all()

    @given(batch=distinct_batches)
    def test_most_recent_first(self, batch):
        store = RecordStore()
        store.upsert_many(batch)
        ordered = store.all()

        for newer, older in zip(ordered, ordered[1:]):
            assert newer.captured_at >= older.captured_at
            if newer.captured_at == older.captured_at:
                assert newer.id > older.id


class TestPercentageProperties:
    @given(organic=weights, inorganic=weights)
    def test_sum_to_100_or_both_zero(self, organic, inorganic):
        organic_pct, inorganic_pct = split_percentages(organic, inorganic)

        if organic + inorganic == 0:
            assert (organic_pct, inorganic_pct) == (0, 0)
        else:
            assert organic_pct + inorganic_pct == 100
            assert 0 <= organic_pct <= 100
            assert 0 <= inorganic_pct <= 100
