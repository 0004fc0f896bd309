"""
Local vector index stored in SQLite.

Vectors are kept as float32 BLOBs next to a JSON metadata column and
searched by brute-force cosine similarity with numpy. Good enough for a
single companion's feelings; swap in a hosted index through ``VectorIndex``
when that stops being true.
"""

import json
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

import numpy as np
from loguru import logger

from eqmind.errors import VectorIndexError
from eqmind.memory.base import VectorIndex
from eqmind.memory.types import VectorMatch


def cosine_similarity(a: list[float], b: list[float]) -> float:
    a_arr, b_arr = np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)
    norm_a, norm_b = np.linalg.norm(a_arr), np.linalg.norm(b_arr)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a_arr, b_arr) / (norm_a * norm_b))


class SqliteVectorIndex(VectorIndex):
    def __init__(self, db_path: Path | str, namespace: str = "feelings"):
        self.db_path = Path(db_path)
        self.namespace = namespace
        self._lock = threading.RLock()
        if str(db_path) != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
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
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS vectors (
                    id TEXT NOT NULL,
                    namespace TEXT NOT NULL,
                    embedding BLOB NOT NULL,
                    metadata TEXT DEFAULT '{}',
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (id, namespace)
                )
            """)
            self._conn.commit()

    def upsert(self, vector_id: str, vector: list[float], metadata: dict[str, Any] | None = None) -> None:
        if not vector:
            raise VectorIndexError(f"refusing to index empty vector for {vector_id}")
        blob = sqlite3.Binary(np.asarray(vector, dtype=np.float32).tobytes())
        with self._lock:
            try:
                self._conn.execute(
                    "INSERT OR REPLACE INTO vectors (id, namespace, embedding, metadata, updated_at) VALUES (?, ?, ?, ?, ?)",
                    (vector_id, self.namespace, blob, json.dumps(metadata or {}), datetime.now().isoformat()),
                )
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                raise VectorIndexError(f"upsert of {vector_id} failed: {e}") from e
        logger.debug(f"Indexed vector {vector_id} in '{self.namespace}'")

    def query(
        self,
        vector: list[float],
        top_k: int = 5,
        metadata_filter: dict[str, Any] | None = None,
    ) -> list[VectorMatch]:
        with self._lock:
            try:
                rows = self._conn.execute(
                    "SELECT id, embedding, metadata FROM vectors WHERE namespace = ?",
                    (self.namespace,),
                ).fetchall()
            except sqlite3.Error as e:
                raise VectorIndexError(f"query failed: {e}") from e

        matches: list[VectorMatch] = []
        for vector_id, blob, raw_meta in rows:
            metadata = json.loads(raw_meta or "{}")
            if metadata_filter and any(metadata.get(k) != v for k, v in metadata_filter.items()):
                continue
            stored = np.frombuffer(blob, dtype=np.float32)
            if len(stored) != len(vector):
                continue
            # Negative cosine means unrelated for our purposes
            score = max(0.0, min(1.0, cosine_similarity(vector, stored)))
            matches.append(VectorMatch(id=vector_id, score=score, metadata=metadata))

        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:top_k]

    def delete(self, vector_id: str) -> bool:
        with self._lock:
            cursor = self._conn.execute(
                "DELETE FROM vectors WHERE id = ? AND namespace = ?", (vector_id, self.namespace)
            )
            self._conn.commit()
            return cursor.rowcount > 0

    def count(self) -> int:
        with self._lock:
            return self._conn.execute(
                "SELECT COUNT(*) FROM vectors WHERE namespace = ?", (self.namespace,)
            ).fetchone()[0]
