"""Tests for the read-only report views."""

import pytest

from eqmind.agent.reports import Reports
from eqmind.memory.lexicon import SEED_EMOTIONS, EmotionLexicon
from eqmind.memory.types import Pillar, TraitSnapshot, Weight


@pytest.fixture
def reports(store):
    return Reports(store)


def test_surface_excludes_metabolized_by_default(reports, store):
    heavy = store.insert_record(text="heavy", label="sad", weight=Weight.HEAVY)
    light = store.insert_record(text="light", label="happy", weight=Weight.LIGHT)
    store.mark_resolved(heavy.id, "done", None, 0.1)

    assert [r.id for r in reports.surface()] == [light.id]
    assert [r.id for r in reports.surface(include_metabolized=True)] == [heavy.id, light.id]


def test_surface_does_not_reinforce(reports, store):
    record = store.insert_record(text="x", label="happy")
    reports.surface()
    assert store.get_record(record.id).access_count == 0


def test_landscape(reports, store):
    store.insert_record(text="a", label="happy", pillar=Pillar.SELF_AWARENESS)
    store.insert_record(text="b", label="happy", pillar=Pillar.SELF_AWARENESS)
    store.insert_record(text="c", label="sad", pillar=Pillar.SOCIAL_AWARENESS)

    view = reports.landscape(days=7)

    assert view.total == 3
    assert view.pillar_counts[Pillar.SELF_AWARENESS] == 2
    assert view.pillar_counts[Pillar.RELATIONSHIP_MANAGEMENT] == 0
    assert view.top_labels == {"happy": 2, "sad": 1}
    assert [r.text for r in view.recent] == ["c", "b", "a"]


def test_consolidation(reports, store):
    open_heavy = store.insert_record(text="still raw", label="hurt", weight=Weight.HEAVY, context="home")
    resolved = store.insert_record(text="worked through", label="hurt", weight=Weight.HEAVY, context="home")
    store.mark_resolved(resolved.id, None, None, 0.1)
    store.insert_record(text="elsewhere", label="happy", weight=Weight.HEAVY, context="work")

    view = reports.consolidation(days=1, context="home")

    assert view.total == 2
    assert view.label_counts == {"hurt": 2}
    assert view.dominant_label == "hurt"
    assert [r.id for r in view.unprocessed] == [open_heavy.id]


def test_consolidation_empty(reports):
    view = reports.consolidation()
    assert view.total == 0
    assert view.dominant_label is None
    assert view.unprocessed == []


def test_health(reports, store):
    EmotionLexicon(store)
    record = store.insert_record(text="a", label="happy")
    store.insert_record(text="b", label="sad")
    store.insert_signal(record.id, (1, 1, 1, 1))
    store.insert_snapshot(TraitSnapshot(category_code="INFP", confidence=2, totals=(1, 1, 1, 1), total_signals=1))

    report = reports.health()

    assert report.total_records == 2
    assert report.recent_records == 2
    assert report.emotions == len(SEED_EMOTIONS)
    assert report.signals == 1
    assert report.shadows == 0
    assert report.strength == {"strong": 2, "fading": 0, "faint": 0}
    assert report.trait.category_code == "INFP"
    assert report.entropy == pytest.approx(1.0)


def test_when(reports, store):
    store.insert_record(text="first", label="anxious")
    store.insert_record(text="other", label="happy")
    store.insert_record(text="second", label="anxious")
    assert [r.text for r in reports.when("Anxious")] == ["second", "first"]
