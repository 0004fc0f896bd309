"""Tests for RecordStore: records, filters, counts, and persistence."""

from datetime import datetime, timedelta

import pytest

from eqmind.errors import RecordNotFoundError
from eqmind.memory.store import RecordStore
from eqmind.memory.types import Charge, Intensity, Pillar, Weight


def test_insert_and_get_roundtrip(store):
    record = store.insert_record(
        text="Stayed calm during the review",
        label="proud",
        intensity=Intensity.STRONG,
        pillar=Pillar.SELF_MANAGEMENT,
        weight=Weight.HEAVY,
        linked_entity="Alex",
        tags=["technical"],
        context="work",
        conversation=[{"role": "user", "content": "how did it go?"}],
    )

    loaded = store.get_record(record.id)
    assert loaded.text == "Stayed calm during the review"
    assert loaded.label == "proud"
    assert loaded.intensity == Intensity.STRONG
    assert loaded.pillar == Pillar.SELF_MANAGEMENT
    assert loaded.weight == Weight.HEAVY
    assert loaded.charge == Charge.FRESH
    assert loaded.strength == 1.0
    assert loaded.tags == ["technical"]
    assert loaded.context == "work"
    assert loaded.conversation == [{"role": "user", "content": "how did it go?"}]
    assert loaded.vector_id == f"feel-{record.id}"
    assert isinstance(loaded.created_at, datetime)


def test_insert_rejects_oversized_text(store):
    with pytest.raises(ValueError):
        store.insert_record(text="x" * 9000)


def test_get_missing_record(store):
    assert store.find_record(1) is None
    with pytest.raises(RecordNotFoundError):
        store.get_record(1)


def test_find_latest_by_text_is_case_insensitive(store):
    store.insert_record(text="The Storm last night")
    newer = store.insert_record(text="another storm warning")
    assert store.find_latest_by_text("STORM").id == newer.id
    with pytest.raises(RecordNotFoundError):
        store.find_latest_by_text("sunshine")


def test_text_match_treats_wildcards_literally(store):
    discount = store.insert_record(text="Got 50% off the concert tickets")
    store.insert_record(text="Scored 50 points and felt off all day")
    snake = store.insert_record(text="renamed my_file before the deadline")
    store.insert_record(text="renamed myXfile on a whim")

    assert store.find_latest_by_text("50%").id == discount.id
    assert store.find_latest_by_text("my_file").id == snake.id
    assert [r.id for r in store.list_records(text_match="50%")] == [discount.id]
    with pytest.raises(RecordNotFoundError):
        store.find_latest_by_text("100%")


def test_list_records_filters(store):
    store.insert_record(text="a", label="happy", pillar=Pillar.SELF_AWARENESS, context="home")
    store.insert_record(text="b", label="sad", weight=Weight.HEAVY, context="work")
    store.insert_record(text="c", label="happy", weight=Weight.LIGHT, context="work")

    assert [r.text for r in store.list_records(label="happy")] == ["c", "a"]
    assert [r.text for r in store.list_records(pillar=Pillar.SELF_AWARENESS)] == ["a"]
    assert [r.text for r in store.list_records(weight=Weight.HEAVY)] == ["b"]
    assert [r.text for r in store.list_records(context="work")] == ["c", "b"]
    assert store.list_records(since=datetime.now() + timedelta(days=1)) == []
    assert len(store.list_records(limit=2)) == 2


def test_surface_order(store):
    light = store.insert_record(text="light", weight=Weight.LIGHT)
    heavy = store.insert_record(text="heavy", weight=Weight.HEAVY)
    medium = store.insert_record(text="medium", weight=Weight.MEDIUM)
    done = store.insert_record(text="done", weight=Weight.HEAVY)
    store.mark_resolved(done.id, None, None, 0.1)

    ordered = [r.id for r in store.list_records(order="surface", include_metabolized=False)]
    assert ordered == [heavy.id, medium.id, light.id]


def test_label_counts_skip_neutral(store):
    for label in ("happy", "happy", "sad", "neutral", "neutral", "neutral"):
        store.insert_record(text=label, label=label)
    assert store.label_counts() == {"happy": 2, "sad": 1}
    assert store.label_counts(limit=1) == {"happy": 2}


def test_label_counts_recent_window(store):
    store.insert_record(text="old", label="sad")
    store.insert_record(text="new", label="happy")
    assert store.label_counts(recent_window=1) == {"happy": 1}


def test_pillar_counts_include_every_pillar(store):
    store.insert_record(text="a", pillar=Pillar.SOCIAL_AWARENESS)
    store.insert_record(text="b")
    counts = store.pillar_counts()
    assert list(counts) == list(Pillar)
    assert counts[Pillar.SOCIAL_AWARENESS] == 1
    assert sum(counts.values()) == 1


def test_sample_least_accessed_prefers_untouched(store):
    touched = store.insert_record(text="touched", pillar=Pillar.SELF_AWARENESS)
    fresh = store.insert_record(text="fresh", pillar=Pillar.SELF_AWARENESS)
    store.reinforce([touched.id], 0.05)
    picked = store.sample_least_accessed(pillar=Pillar.SELF_AWARENESS, limit=1)
    assert [r.id for r in picked] == [fresh.id]


def test_sample_random_excludes(store):
    a = store.insert_record(text="a")
    b = store.insert_record(text="b")
    assert [r.id for r in store.sample_random(limit=5, exclude_ids=[a.id])] == [b.id]


def test_strength_buckets(store):
    strong = store.insert_record(text="strong")
    faint = store.insert_record(text="faint", weight=Weight.LIGHT)
    for _ in range(15):
        store.decay({Weight.LIGHT: 0.9}, 0.05, 0.15)
    assert store.get_record(strong.id).strength == 1.0
    assert store.strength_buckets() == {"strong": 1, "fading": 0, "faint": 1}
    assert store.get_record(faint.id).strength < 0.3


def test_count_rows_rejects_unknown_table(store):
    with pytest.raises(ValueError):
        store.count_rows("sqlite_master")


def test_data_survives_reopen(tmp_path):
    path = tmp_path / "eq.db"
    with RecordStore(path) as s:
        record_id = s.insert_record(text="persist me", label="calm").id
    with RecordStore(path) as s:
        assert s.get_record(record_id).text == "persist me"


def test_creates_parent_directory(tmp_path):
    path = tmp_path / "nested" / "dir" / "eq.db"
    with RecordStore(path) as s:
        s.insert_record(text="x")
    assert path.exists()
