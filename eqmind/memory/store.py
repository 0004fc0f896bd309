"""Record store for feelings, the emotion lexicon, and the signal/trait/shadow logs, using SQLite."""

import json
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from loguru import logger

from eqmind.errors import RecordNotFoundError
from eqmind.memory.types import (
    NEUTRAL,
    Charge,
    EmotionDefinition,
    Intensity,
    MemoryRecord,
    Pillar,
    ShadowEvent,
    SignalEvent,
    TraitSnapshot,
    Weight,
)

MAX_CONTENT_LENGTH = 8192

_RECORD_COLUMNS = (
    "id, content, emotion, intensity, pillar, weight, charge, strength, sit_count, access_count, "
    "sparked_by, linked_insight_id, linked_entity, tags, context, source, resolution_note, "
    "last_sit_note, conversation, created_at, last_accessed_at, resolved_at"
)

_EMOTION_COLUMNS = (
    "emotion_word, e_i_score, s_n_score, t_f_score, j_p_score, is_shadow_for, category, "
    "definition, times_used, last_used, user_defined"
)

_SURFACE_ORDER = """
    CASE weight WHEN 'heavy' THEN 3 WHEN 'medium' THEN 2 ELSE 1 END DESC,
    strength DESC,
    CASE charge WHEN 'fresh' THEN 4 WHEN 'warm' THEN 3 WHEN 'cool' THEN 2 ELSE 1 END DESC,
    created_at DESC, id DESC
"""


def _now() -> str:
    return datetime.now().isoformat()


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _like_pattern(text: str) -> str:
    """Substring pattern for ``LIKE ? ESCAPE '\\'`` with wildcards taken literally."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _split_codes(value: str | None) -> frozenset[str]:
    if not value:
        return frozenset()
    return frozenset(code.strip().upper() for code in value.split(",") if code.strip())


class RecordStore:
    """
    SQLite-backed keyed store for every entity the engine owns.

    Strength changes are issued as single UPDATE statements (multiply with a
    floor, add with a cap) so concurrent decay and reinforcement never
    overwrite each other's arithmetic.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        if str(db_path) != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._init_db()

    def close(self) -> None:
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _init_db(self) -> None:
        with self._lock:
            self._conn.executescript("""
                CREATE TABLE IF NOT EXISTS feelings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    content TEXT NOT NULL,
                    emotion TEXT NOT NULL DEFAULT 'neutral',
                    intensity TEXT NOT NULL DEFAULT 'present',
                    pillar TEXT,
                    weight TEXT NOT NULL DEFAULT 'medium',
                    charge TEXT NOT NULL DEFAULT 'fresh',
                    strength REAL NOT NULL DEFAULT 1.0,
                    sit_count INTEGER NOT NULL DEFAULT 0,
                    access_count INTEGER NOT NULL DEFAULT 0,
                    sparked_by INTEGER REFERENCES feelings(id),
                    linked_insight_id INTEGER REFERENCES feelings(id),
                    linked_entity TEXT,
                    tags TEXT DEFAULT '[]',
                    context TEXT DEFAULT 'default',
                    source TEXT DEFAULT 'feel',
                    resolution_note TEXT,
                    last_sit_note TEXT,
                    conversation TEXT DEFAULT '[]',
                    created_at TEXT NOT NULL,
                    last_accessed_at TEXT,
                    resolved_at TEXT
                );
                CREATE INDEX IF NOT EXISTS idx_feelings_emotion ON feelings(emotion);
                CREATE INDEX IF NOT EXISTS idx_feelings_pillar ON feelings(pillar);
                CREATE INDEX IF NOT EXISTS idx_feelings_charge ON feelings(charge);
                CREATE INDEX IF NOT EXISTS idx_feelings_created ON feelings(created_at);

                CREATE TABLE IF NOT EXISTS emotion_vocabulary (
                    emotion_word TEXT PRIMARY KEY,
                    e_i_score INTEGER NOT NULL DEFAULT 0,
                    s_n_score INTEGER NOT NULL DEFAULT 0,
                    t_f_score INTEGER NOT NULL DEFAULT 0,
                    j_p_score INTEGER NOT NULL DEFAULT 0,
                    is_shadow_for TEXT,
                    category TEXT DEFAULT 'neutral',
                    definition TEXT,
                    times_used INTEGER NOT NULL DEFAULT 0,
                    last_used TEXT,
                    user_defined INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS axis_signals (
                    signal_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    feeling_id INTEGER REFERENCES feelings(id),
                    e_i_delta INTEGER NOT NULL DEFAULT 0,
                    s_n_delta INTEGER NOT NULL DEFAULT 0,
                    t_f_delta INTEGER NOT NULL DEFAULT 0,
                    j_p_delta INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS trait_snapshots (
                    snapshot_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    calculated_type TEXT NOT NULL,
                    confidence INTEGER NOT NULL,
                    e_i_total INTEGER NOT NULL,
                    s_n_total INTEGER NOT NULL,
                    t_f_total INTEGER NOT NULL,
                    j_p_total INTEGER NOT NULL,
                    total_signals INTEGER NOT NULL,
                    snapshot_date TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS shadow_moments (
                    moment_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    feeling_id INTEGER REFERENCES feelings(id),
                    emotion_word TEXT NOT NULL,
                    shadow_for_type TEXT NOT NULL,
                    note TEXT,
                    recorded_at TEXT NOT NULL
                );
            """)
            self._conn.commit()

    # ── Feelings ──────────────────────────────────────────────────────

    def insert_record(
        self,
        text: str,
        label: str = NEUTRAL,
        intensity: Intensity = Intensity.PRESENT,
        pillar: Pillar | None = None,
        weight: Weight = Weight.MEDIUM,
        linked_predecessor_id: int | None = None,
        linked_entity: str | None = None,
        tags: list[str] | None = None,
        context: str = "default",
        source: str = "feel",
        conversation: list[dict[str, str]] | None = None,
    ) -> MemoryRecord:
        if len(text) > MAX_CONTENT_LENGTH:
            raise ValueError(f"content exceeds maximum length of {MAX_CONTENT_LENGTH}")

        with self._lock:
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                cursor = self._conn.execute(
                    "INSERT INTO feelings (content, emotion, intensity, pillar, weight, charge, strength, "
                    "sparked_by, linked_entity, tags, context, source, conversation, created_at) "
                    "VALUES (?, ?, ?, ?, ?, 'fresh', 1.0, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        text,
                        label,
                        intensity.value,
                        pillar.value if pillar else None,
                        weight.value,
                        linked_predecessor_id,
                        linked_entity,
                        json.dumps(tags or []),
                        context,
                        source,
                        json.dumps(conversation or []),
                        _now(),
                    ),
                )
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise
            record_id = cursor.lastrowid
        logger.debug(f"Stored feeling #{record_id} [{label}/{weight.value}]: {text[:50]}")
        return self.get_record(record_id)

    def find_record(self, record_id: int) -> MemoryRecord | None:
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_RECORD_COLUMNS} FROM feelings WHERE id = ?", (record_id,)
            ).fetchone()
        return self._row_to_record(row) if row else None

    def get_record(self, record_id: int) -> MemoryRecord:
        record = self.find_record(record_id)
        if record is None:
            raise RecordNotFoundError(f"Feeling #{record_id} not found")
        return record

    def exists(self, record_id: int) -> bool:
        with self._lock:
            return self._conn.execute("SELECT 1 FROM feelings WHERE id = ?", (record_id,)).fetchone() is not None

    def find_latest_by_text(self, text_match: str) -> MemoryRecord:
        """Most recent record whose text contains ``text_match`` (case-insensitive)."""
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_RECORD_COLUMNS} FROM feelings WHERE content LIKE ? ESCAPE '\\' ORDER BY created_at DESC, id DESC LIMIT 1",
                (_like_pattern(text_match),),
            ).fetchone()
        if row is None:
            raise RecordNotFoundError(f"No feeling matches '{text_match}'")
        return self._row_to_record(row)

    def list_records(
        self,
        label: str | None = None,
        pillar: Pillar | None = None,
        weight: Weight | None = None,
        context: str | None = None,
        text_match: str | None = None,
        since: datetime | None = None,
        include_metabolized: bool = True,
        order: str = "recent",
        limit: int = 10,
    ) -> list[MemoryRecord]:
        """
        List records matching all given filters.

        Args:
            order: "recent" (newest first) or "surface" (weight, strength,
                charge freshness, then recency).
        """
        where, params = self._filters(
            label=label, pillar=pillar, weight=weight, context=context,
            text_match=text_match, since=since, include_metabolized=include_metabolized,
        )
        order_sql = _SURFACE_ORDER if order == "surface" else "created_at DESC, id DESC"
        sql = f"SELECT {_RECORD_COLUMNS} FROM feelings{where} ORDER BY {order_sql} LIMIT ?"
        with self._lock:
            rows = self._conn.execute(sql, (*params, limit)).fetchall()
        return [self._row_to_record(r) for r in rows]

    def count_records(self, since: datetime | None = None, context: str | None = None) -> int:
        where, params = self._filters(since=since, context=context)
        with self._lock:
            return self._conn.execute(f"SELECT COUNT(*) FROM feelings{where}", params).fetchone()[0]

    def label_counts(
        self,
        since: datetime | None = None,
        context: str | None = None,
        recent_window: int | None = None,
        limit: int | None = None,
    ) -> dict[str, int]:
        """
        Non-neutral label frequencies, most frequent first.

        Args:
            recent_window: Only count the most recent N non-neutral records.
        """
        where, params = self._filters(since=since, context=context)
        where = f"{where} AND emotion != ?" if where else " WHERE emotion != ?"
        params = [*params, NEUTRAL]
        source = f"(SELECT emotion FROM feelings{where} ORDER BY created_at DESC, id DESC"
        if recent_window is not None:
            source += " LIMIT ?"
            params.append(recent_window)
        source += ")"
        sql = f"SELECT emotion, COUNT(*) AS c FROM {source} GROUP BY emotion ORDER BY c DESC, emotion ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return {label: count for label, count in rows}

    def pillar_counts(self, since: datetime | None = None, context: str | None = None) -> dict[Pillar, int]:
        """Record count for every pillar, zero included, in priority order."""
        where, params = self._filters(since=since, context=context)
        where = f"{where} AND pillar IS NOT NULL" if where else " WHERE pillar IS NOT NULL"
        with self._lock:
            rows = self._conn.execute(
                f"SELECT pillar, COUNT(*) FROM feelings{where} GROUP BY pillar", params
            ).fetchall()
        found = {p: c for p, c in rows}
        return {pillar: found.get(pillar.value, 0) for pillar in Pillar}

    def sample_least_accessed(
        self,
        pillar: Pillar | None = None,
        weight: Weight | None = None,
        limit: int = 1,
        exclude_ids: Iterable[int] = (),
    ) -> list[MemoryRecord]:
        """Records ordered by ascending access count, ties broken randomly."""
        where, params = self._filters(pillar=pillar, weight=weight, exclude_ids=exclude_ids)
        sql = f"SELECT {_RECORD_COLUMNS} FROM feelings{where} ORDER BY access_count ASC, RANDOM() LIMIT ?"
        with self._lock:
            rows = self._conn.execute(sql, (*params, limit)).fetchall()
        return [self._row_to_record(r) for r in rows]

    def sample_random(
        self,
        weight: Weight | None = None,
        context: str | None = None,
        limit: int = 1,
        exclude_ids: Iterable[int] = (),
    ) -> list[MemoryRecord]:
        where, params = self._filters(weight=weight, context=context, exclude_ids=exclude_ids)
        sql = f"SELECT {_RECORD_COLUMNS} FROM feelings{where} ORDER BY RANDOM() LIMIT ?"
        with self._lock:
            rows = self._conn.execute(sql, (*params, limit)).fetchall()
        return [self._row_to_record(r) for r in rows]

    def strength_buckets(self) -> dict[str, int]:
        with self._lock:
            row = self._conn.execute("""
                SELECT
                    COUNT(CASE WHEN strength >= 0.7 THEN 1 END),
                    COUNT(CASE WHEN strength >= 0.3 AND strength < 0.7 THEN 1 END),
                    COUNT(CASE WHEN strength < 0.3 THEN 1 END)
                FROM feelings WHERE charge != 'metabolized'
            """).fetchone()
        return {"strong": row[0], "fading": row[1], "faint": row[2]}

    # ── Strength and charge (atomic statements) ───────────────────────

    def decay(self, factors: dict[Weight, float], floor: float, cool_threshold: float) -> tuple[dict[Weight, int], int]:
        """
        Apply one multiplicative decay cycle to every non-metabolized record.

        Returns:
            (rows decayed per weight, rows moved from fresh/warm to cool)
        """
        decayed: dict[Weight, int] = {}
        with self._lock:
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                for weight, factor in factors.items():
                    cursor = self._conn.execute(
                        "UPDATE feelings SET strength = MIN(1.0, MAX(?, strength * ?)) "
                        "WHERE weight = ? AND charge != 'metabolized'",
                        (floor, factor, weight.value),
                    )
                    decayed[weight] = cursor.rowcount
                cursor = self._conn.execute(
                    "UPDATE feelings SET charge = 'cool' WHERE strength < ? AND charge IN ('fresh', 'warm')",
                    (cool_threshold,),
                )
                cooled = cursor.rowcount
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise
        return decayed, cooled

    def reinforce(self, record_ids: Iterable[int], amount: float) -> int:
        """
        Add ``amount`` to strength (capped at 1.0) and count an access.

        Metabolized records keep their pinned strength; the access is still counted.
        """
        ids = sorted({int(i) for i in record_ids})
        if not ids:
            return 0
        placeholders = ",".join("?" for _ in ids)
        with self._lock:
            cursor = self._conn.execute(
                f"""
                UPDATE feelings
                SET strength = CASE WHEN charge = 'metabolized' THEN strength
                                    ELSE MIN(1.0, strength + ?) END,
                    access_count = access_count + 1,
                    last_accessed_at = ?
                WHERE id IN ({placeholders})
                """,
                (amount, _now(), *ids),
            )
            self._conn.commit()
            return cursor.rowcount

    def compare_and_set_sit(
        self, record_id: int, expected_charge: Charge, new_charge: Charge, expected_sit_count: int, note: str | None
    ) -> bool:
        """Record a sit only if charge and sit count are still what the caller read."""
        with self._lock:
            cursor = self._conn.execute(
                "UPDATE feelings SET sit_count = sit_count + 1, charge = ?, last_sit_note = COALESCE(?, last_sit_note), "
                "last_accessed_at = ? WHERE id = ? AND charge = ? AND sit_count = ?",
                (new_charge.value, note, _now(), record_id, expected_charge.value, expected_sit_count),
            )
            self._conn.commit()
            return cursor.rowcount == 1

    def mark_resolved(
        self, record_id: int, note: str | None, linked_resolution_id: int | None, pinned_strength: float
    ) -> bool:
        """Move a record to metabolized. False if it already was."""
        with self._lock:
            cursor = self._conn.execute(
                "UPDATE feelings SET charge = 'metabolized', resolution_note = ?, linked_insight_id = ?, "
                "resolved_at = ?, strength = ? WHERE id = ? AND charge != 'metabolized'",
                (note, linked_resolution_id, _now(), pinned_strength, record_id),
            )
            self._conn.commit()
            return cursor.rowcount == 1

    # ── Emotion lexicon rows ──────────────────────────────────────────

    def get_emotion(self, label: str) -> EmotionDefinition | None:
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_EMOTION_COLUMNS} FROM emotion_vocabulary WHERE emotion_word = ?", (label,)
            ).fetchone()
        return self._row_to_emotion(row) if row else None

    def insert_emotion(self, emotion: EmotionDefinition, ignore_existing: bool = False) -> bool:
        verb = "INSERT OR IGNORE" if ignore_existing else "INSERT"
        with self._lock:
            cursor = self._conn.execute(
                f"{verb} INTO emotion_vocabulary (emotion_word, e_i_score, s_n_score, t_f_score, j_p_score, "
                "is_shadow_for, category, definition, user_defined, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    emotion.label,
                    *emotion.axis_weights,
                    ",".join(sorted(emotion.shadow_for)) or None,
                    emotion.category,
                    emotion.definition,
                    int(emotion.is_user_defined),
                    _now(),
                ),
            )
            self._conn.commit()
            return cursor.rowcount == 1

    def update_emotion(self, label: str, **columns: Any) -> bool:
        if not columns:
            return False
        assignments = ", ".join(f"{col} = ?" for col in columns)
        with self._lock:
            cursor = self._conn.execute(
                f"UPDATE emotion_vocabulary SET {assignments} WHERE emotion_word = ?",
                (*columns.values(), label),
            )
            self._conn.commit()
            return cursor.rowcount == 1

    def increment_emotion_usage(self, label: str) -> None:
        with self._lock:
            self._conn.execute(
                "UPDATE emotion_vocabulary SET times_used = times_used + 1, last_used = ? WHERE emotion_word = ?",
                (_now(), label),
            )
            self._conn.commit()

    def list_emotions(self, limit: int = 30) -> list[EmotionDefinition]:
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {_EMOTION_COLUMNS} FROM emotion_vocabulary ORDER BY times_used DESC, emotion_word ASC LIMIT ?",
                (limit,),
            ).fetchall()
        return [self._row_to_emotion(r) for r in rows]

    def count_emotions(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM emotion_vocabulary").fetchone()[0]

    # ── Signals, snapshots, shadows (append-only) ─────────────────────

    def insert_signal(self, record_id: int, deltas: tuple[int, int, int, int]) -> SignalEvent:
        now = _now()
        with self._lock:
            cursor = self._conn.execute(
                "INSERT INTO axis_signals (feeling_id, e_i_delta, s_n_delta, t_f_delta, j_p_delta, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (record_id, *deltas, now),
            )
            self._conn.commit()
        return SignalEvent(record_id=record_id, deltas=tuple(deltas), created_at=_parse_dt(now), id=cursor.lastrowid)

    def signal_totals(self, since: datetime | None = None) -> tuple[tuple[int, int, int, int], int]:
        sql = (
            "SELECT COALESCE(SUM(e_i_delta), 0), COALESCE(SUM(s_n_delta), 0), "
            "COALESCE(SUM(t_f_delta), 0), COALESCE(SUM(j_p_delta), 0), COUNT(*) FROM axis_signals"
        )
        params: tuple = ()
        if since is not None:
            sql += " WHERE created_at >= ?"
            params = (since.isoformat(),)
        with self._lock:
            row = self._conn.execute(sql, params).fetchone()
        return (row[0], row[1], row[2], row[3]), row[4]

    def insert_snapshot(self, snapshot: TraitSnapshot) -> TraitSnapshot:
        now = _now()
        with self._lock:
            cursor = self._conn.execute(
                "INSERT INTO trait_snapshots (calculated_type, confidence, e_i_total, s_n_total, t_f_total, "
                "j_p_total, total_signals, snapshot_date) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (snapshot.category_code, snapshot.confidence, *snapshot.totals, snapshot.total_signals, now),
            )
            self._conn.commit()
        snapshot.id = cursor.lastrowid
        snapshot.created_at = _parse_dt(now)
        return snapshot

    def list_snapshots(self, limit: int = 1) -> list[TraitSnapshot]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT snapshot_id, calculated_type, confidence, e_i_total, s_n_total, t_f_total, j_p_total, "
                "total_signals, snapshot_date FROM trait_snapshots ORDER BY snapshot_id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [
            TraitSnapshot(
                id=r[0], category_code=r[1], confidence=r[2], totals=(r[3], r[4], r[5], r[6]),
                total_signals=r[7], created_at=_parse_dt(r[8]),
            )
            for r in rows
        ]

    def latest_snapshot(self) -> TraitSnapshot | None:
        snapshots = self.list_snapshots(limit=1)
        return snapshots[0] if snapshots else None

    def insert_shadow(self, event: ShadowEvent) -> ShadowEvent:
        now = _now()
        with self._lock:
            cursor = self._conn.execute(
                "INSERT INTO shadow_moments (feeling_id, emotion_word, shadow_for_type, note, recorded_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (event.record_id, event.emotion_label, event.category_code, event.note, now),
            )
            self._conn.commit()
        event.id = cursor.lastrowid
        event.recorded_at = _parse_dt(now)
        return event

    def list_shadows(self, limit: int = 10, record_id: int | None = None) -> list[ShadowEvent]:
        sql = "SELECT moment_id, feeling_id, emotion_word, shadow_for_type, note, recorded_at FROM shadow_moments"
        params: tuple = ()
        if record_id is not None:
            sql += " WHERE feeling_id = ?"
            params = (record_id,)
        sql += " ORDER BY moment_id DESC LIMIT ?"
        with self._lock:
            rows = self._conn.execute(sql, (*params, limit)).fetchall()
        return [
            ShadowEvent(id=r[0], record_id=r[1], emotion_label=r[2], category_code=r[3], note=r[4], recorded_at=_parse_dt(r[5]))
            for r in rows
        ]

    def count_rows(self, table: str) -> int:
        if table not in ("feelings", "emotion_vocabulary", "axis_signals", "trait_snapshots", "shadow_moments"):
            raise ValueError(f"Unknown table: {table}")
        with self._lock:
            return self._conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    # ── Internal helpers ──────────────────────────────────────────────

    @staticmethod
    def _filters(
        label: str | None = None,
        pillar: Pillar | None = None,
        weight: Weight | None = None,
        context: str | None = None,
        text_match: str | None = None,
        since: datetime | None = None,
        include_metabolized: bool = True,
        exclude_ids: Iterable[int] = (),
    ) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if label is not None:
            clauses.append("emotion = ?")
            params.append(label)
        if pillar is not None:
            clauses.append("pillar = ?")
            params.append(pillar.value)
        if weight is not None:
            clauses.append("weight = ?")
            params.append(weight.value)
        if context is not None:
            clauses.append("context = ?")
            params.append(context)
        if text_match:
            clauses.append("content LIKE ? ESCAPE '\\'")
            params.append(_like_pattern(text_match))
        if since is not None:
            clauses.append("created_at >= ?")
            params.append(since.isoformat())
        if not include_metabolized:
            clauses.append("charge != 'metabolized'")
        excluded = list(exclude_ids)
        if excluded:
            clauses.append(f"id NOT IN ({','.join('?' for _ in excluded)})")
            params.extend(excluded)
        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    @staticmethod
    def _row_to_record(row) -> MemoryRecord:
        return MemoryRecord(
            id=row[0],
            text=row[1],
            label=row[2],
            intensity=Intensity.parse(row[3]),
            pillar=Pillar(row[4]) if row[4] else None,
            weight=Weight(row[5]),
            charge=Charge(row[6]),
            strength=row[7],
            sit_count=row[8] or 0,
            access_count=row[9] or 0,
            linked_predecessor_id=row[10],
            linked_resolution_id=row[11],
            linked_entity=row[12],
            tags=json.loads(row[13] or "[]"),
            context=row[14] or "default",
            source=row[15] or "feel",
            resolution_note=row[16],
            last_sit_note=row[17],
            conversation=json.loads(row[18] or "[]"),
            created_at=_parse_dt(row[19]),
            last_accessed_at=_parse_dt(row[20]),
            resolved_at=_parse_dt(row[21]),
        )

    @staticmethod
    def _row_to_emotion(row) -> EmotionDefinition:
        return EmotionDefinition(
            label=row[0],
            axis_weights=(row[1], row[2], row[3], row[4]),
            shadow_for=_split_codes(row[5]),
            category=row[6] or NEUTRAL,
            definition=row[7],
            times_used=row[8] or 0,
            last_used_at=_parse_dt(row[9]),
            is_user_defined=bool(row[10]),
        )
