"""Vector index used for similarity search and recommendations.

The index is a derived, best-effort cache of the relational store. Route code
never talks to a ``VectorIndex`` directly: it goes through
``GuardedVectorIndex``, which tolerates a missing index and turns every
failure into a logged warning plus an empty result.
"""
import json
import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol

import numpy as np

from ..core.config import Settings, get_settings

logger = logging.getLogger("curiocodex.vectors")


@dataclass
class VectorRecord:
    id: str
    values: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorMatch:
    id: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)


class VectorIndex(Protocol):
    def upsert(self, records: List[VectorRecord]) -> None: ...

    def get_by_ids(self, ids: List[str]) -> List[VectorRecord]: ...

    def delete_by_ids(self, ids: List[str]) -> None: ...

    def query(self, vector: List[float], top_k: int, filter: Optional[Dict[str, Any]] = None) -> List[VectorMatch]: ...


class LocalVectorIndex:
    """Cosine-similarity index kept in process, optionally persisted to disk.

    Metadata filters are equality-only, like the hosted indexes this stands in
    for: there is no way to express "userId != x".
    """

    def __init__(self, directory: str | None = None):
        self.dir = directory or None
        self._lock = threading.Lock()
        self._vectors: Dict[str, np.ndarray] = {}
        self._meta: Dict[str, Dict[str, Any]] = {}
        self.dimension: Optional[int] = None
        if self.dir:
            os.makedirs(self.dir, exist_ok=True)
            self.vectors_path = os.path.join(self.dir, "vectors.npy")
            self.meta_path = os.path.join(self.dir, "meta.json")
            self._load()

    def _load(self):
        if not (os.path.exists(self.vectors_path) and os.path.exists(self.meta_path)):
            return
        matrix = np.load(self.vectors_path)
        with open(self.meta_path, "r", encoding="utf-8") as f:
            entries = json.load(f)
        for row, entry in zip(matrix, entries):
            self._vectors[entry["id"]] = np.asarray(row, dtype="float32")
            self._meta[entry["id"]] = entry.get("metadata", {})
        if len(matrix):
            self.dimension = int(matrix.shape[1])
        logger.info(f"Loaded {len(self._vectors)} vectors from {self.dir}")

    def _persist(self):
        if not self.dir:
            return
        ids = list(self._vectors)
        matrix = np.stack([self._vectors[i] for i in ids]) if ids else np.zeros((0, self.dimension or 0), dtype="float32")
        np.save(self.vectors_path, matrix)
        with open(self.meta_path, "w", encoding="utf-8") as f:
            json.dump([{"id": i, "metadata": self._meta[i]} for i in ids], f)

    def upsert(self, records: List[VectorRecord]) -> None:
        with self._lock:
            for record in records:
                vec = np.asarray(record.values, dtype="float32")
                if vec.ndim != 1 or not len(vec):
                    raise ValueError(f"Vector for {record.id} must be a non-empty 1-D array")
                if self.dimension is None:
                    self.dimension = int(vec.shape[0])
                elif vec.shape[0] != self.dimension:
                    raise ValueError(f"Vector for {record.id} has dimension {vec.shape[0]}, index expects {self.dimension}")
                self._vectors[record.id] = vec
                self._meta[record.id] = dict(record.metadata)
            self._persist()

    def get_by_ids(self, ids: List[str]) -> List[VectorRecord]:
        with self._lock:
            return [
                VectorRecord(id=i, values=self._vectors[i].tolist(), metadata=dict(self._meta[i]))
                for i in ids
                if i in self._vectors
            ]

    def delete_by_ids(self, ids: List[str]) -> None:
        with self._lock:
            for i in ids:
                self._vectors.pop(i, None)
                self._meta.pop(i, None)
            self._persist()

    def query(self, vector: List[float], top_k: int, filter: Optional[Dict[str, Any]] = None) -> List[VectorMatch]:
        q = np.asarray(vector, dtype="float32")
        with self._lock:
            candidates = [
                i for i in self._vectors
                if not filter or all(self._meta[i].get(k) == v for k, v in filter.items())
            ]
            if not candidates or top_k <= 0:
                return []
            matrix = np.stack([self._vectors[i] for i in candidates])
            metas = [dict(self._meta[i]) for i in candidates]
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
        dots = matrix @ q
        scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)
        order = np.argsort(-scores, kind="stable")[:top_k]
        return [VectorMatch(id=candidates[j], score=float(scores[j]), metadata=metas[j]) for j in order]

    def __len__(self) -> int:
        return len(self._vectors)


class GuardedVectorIndex:
    """Wraps an optional index so that no call ever raises.

    Writes return ``False`` on failure, reads return empty lists.
    """

    def __init__(self, index: Optional[VectorIndex]):
        self.index = index

    @property
    def available(self) -> bool:
        return self.index is not None

    def upsert(self, records: List[VectorRecord]) -> bool:
        if self.index is None or not records:
            return False
        try:
            self.index.upsert(records)
            return True
        except Exception as e:
            logger.warning(f"Vector index upsert failed for {[r.id for r in records]}: {e}")
            return False

    def get_by_ids(self, ids: Iterable[str]) -> List[VectorRecord]:
        ids = list(ids)
        if self.index is None or not ids:
            return []
        try:
            return list(self.index.get_by_ids(ids))
        except Exception as e:
            logger.warning(f"Vector index fetch failed: {e}")
            return []

    def delete_by_ids(self, ids: Iterable[str]) -> bool:
        ids = list(ids)
        if self.index is None or not ids:
            return False
        try:
            self.index.delete_by_ids(ids)
            return True
        except Exception as e:
            logger.warning(f"Vector index delete failed for {ids}: {e}")
            return False

    def query(self, vector: List[float], top_k: int, filter: Optional[Dict[str, Any]] = None) -> List[VectorMatch]:
        if self.index is None:
            return []
        try:
            return list(self.index.query(vector, top_k=top_k, filter=filter))
        except Exception as e:
            logger.warning(f"Vector index query failed: {e}")
            return []


def build_vector_index(settings: Settings | None = None) -> Optional[LocalVectorIndex]:
    settings = settings or get_settings()
    if not settings.vector_index_enabled:
        logger.info("Vector index disabled; similarity features will return empty results")
        return None
    try:
        return LocalVectorIndex(settings.vector_store_dir)
    except Exception as e:
        logger.warning(f"Vector index unavailable ({e}); continuing without it")
        return None


vector_index = build_vector_index()
