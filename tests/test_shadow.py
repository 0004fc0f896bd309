"""Tests for shadow detection."""

from eqmind.agent.shadow import SHADOW_NOTE, ShadowDetector
from eqmind.memory.types import EmotionDefinition, TraitSnapshot


def _snapshot(store, code):
    return store.insert_snapshot(TraitSnapshot(category_code=code, confidence=50, totals=(1, 1, 1, 1), total_signals=25))


def test_shadow_recorded_when_code_matches(bare_engine, store):
    _snapshot(store, "INFP")

    result = bare_engine.feel("angry", "Snapped at the delivery driver")

    assert result.shadow is not None
    assert result.shadow.emotion_label == "angry"
    assert result.shadow.category_code == "INFP"
    assert result.shadow.note == SHADOW_NOTE
    events = store.list_shadows()
    assert len(events) == 1
    assert events[0].record_id == result.record_id


def test_no_shadow_when_code_differs(bare_engine, store):
    _snapshot(store, "ESTJ")
    result = bare_engine.feel("angry", "Snapped at the delivery driver")
    assert result.shadow is None
    assert store.count_rows("shadow_moments") == 0


def test_no_shadow_without_snapshot(bare_engine, store):
    result = bare_engine.feel("angry", "Snapped at the delivery driver")
    assert result.shadow is None
    assert store.count_rows("shadow_moments") == 0


def test_calibrated_shadow_for_takes_effect(bare_engine, store):
    _snapshot(store, "ISTP")
    bare_engine.lexicon.add("anger", (-10, 0, -10, 0), shadow_for=["ISTP", "INTP"])

    result = bare_engine.feel("anger", "Furious about the cancelled plans")

    assert result.shadow is not None
    assert result.shadow.category_code == "ISTP"


def test_detector_does_not_touch_snapshots_or_records(store):
    snapshot = _snapshot(store, "INFJ")
    record = store.insert_record(text="upset", label="angry")
    emotion = EmotionDefinition(label="angry", shadow_for=frozenset({"INFJ"}))

    event = ShadowDetector(store).check(record.id, emotion)

    assert event.id is not None
    assert store.latest_snapshot().id == snapshot.id
    assert store.count_rows("trait_snapshots") == 1
    assert store.get_record(record.id).charge == record.charge


def test_detector_skips_labels_without_shadow_codes(store):
    _snapshot(store, "INFJ")
    record = store.insert_record(text="fine", label="content")
    assert ShadowDetector(store).check(record.id, EmotionDefinition(label="content")) is None


def test_list_events_newest_first(store):
    _snapshot(store, "INFP")
    detector = ShadowDetector(store)
    emotion = EmotionDefinition(label="angry", shadow_for=frozenset({"INFP"}))
    first = detector.check(store.insert_record(text="a", label="angry").id, emotion)
    second = detector.check(store.insert_record(text="b", label="angry").id, emotion)
    assert [e.id for e in detector.list_events()] == [second.id, first.id]
