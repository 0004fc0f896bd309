"""Shadow detection: flag labels that are difficult for the current trait."""

from eqmind.memory.store import RecordStore
from eqmind.memory.types import EmotionDefinition, ShadowEvent

SHADOW_NOTE = "Growth moment - shadow emotion expressed"


class ShadowDetector:
    """Read the current trait code, append a shadow event on a match. Never mutates records or snapshots."""

    def __init__(self, store: RecordStore):
        self.store = store

    def check(self, record_id: int, emotion: EmotionDefinition, note: str = SHADOW_NOTE) -> ShadowEvent | None:
        if not emotion.shadow_for:
            return None
        snapshot = self.store.latest_snapshot()
        if snapshot is None or snapshot.category_code not in emotion.shadow_for:
            return None
        return self.store.insert_shadow(
            ShadowEvent(
                record_id=record_id,
                emotion_label=emotion.label,
                category_code=snapshot.category_code,
                note=note,
            )
        )

    def list_events(self, limit: int = 10) -> list[ShadowEvent]:
        return self.store.list_shadows(limit=limit)
