# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-30
# Description: MemoryVectorStore
# -----------------------------------------------------------------------------
import threading
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List

from core.exceptions import IdentifierGenerationFailure
from embedding.VectorRecord import VectorRecord
from utility.logging_utils import get_class_logger
from vectorstore.VectorStore import VectorStore
from vectorstore.similarity import cosine_similarity


def _uuid4_str() -> str:
    return str(uuid.uuid4())


@dataclass
class MemoryVectorStore(VectorStore):
    """
    In-process vector store: id -> VectorRecord, cosine similarity search.

    Nothing is persisted. All records must come from the same embedding model;
    dimensions are only checked when vectors are compared.
    """
    id_factory: Callable[[], str] = _uuid4_str
    logger: Any = None
    records: Dict[str, VectorRecord] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self.records)

    def _new_id(self) -> str:
        try:
            new_id = self.id_factory()
        except (OSError, NotImplementedError) as e:
            raise IdentifierGenerationFailure(f"Could not generate record id: {e}") from e
        if not new_id:
            raise IdentifierGenerationFailure("Identifier factory returned an empty id")
        return new_id

    def save(self, record: VectorRecord) -> VectorRecord:
        """Insert or overwrite; an empty id gets a fresh one. Returns the stored record."""
        record_id = record.id or self._new_id()
        stored = replace(record, id=record_id, score=0.0)

        with self._lock:
            overwritten = record_id in self.records
            self.records[record_id] = stored

        self.logger.debug(
            "%s record id=%s (dim=%d)",
            "Overwrote" if overwritten else "Saved",
            record_id,
            len(stored.embedding),
        )
        return stored

    def save_all(self, records: Iterable[VectorRecord]) -> List[VectorRecord]:
        saved = [self.save(r) for r in records]
        self.logger.info("Saved %d records (total=%d)", len(saved), len(self))
        return saved

    def get_all(self) -> List[VectorRecord]:
        with self._lock:
            return list(self.records.values())

    def search_similarities(self, query: VectorRecord, min_score: float) -> List[VectorRecord]:
        """
        Every record whose cosine similarity with the query is >= min_score,
        as copies carrying the score, in insertion order.

        Raises ValueError if the query and a stored record differ in dimension.
        """
        with self._lock:
            snapshot = list(self.records.values())

        results: List[VectorRecord] = []
        for rec in snapshot:
            score = cosine_similarity(query.embedding, rec.embedding)
            if score >= min_score:
                results.append(replace(rec, score=score))

        self.logger.debug(
            "Similarity search: %d/%d records >= %.3f",
            len(results),
            len(snapshot),
            min_score,
        )
        return results

    def search_top_n_similarities(
            self,
            query: VectorRecord,
            min_score: float,
            max_results: int,
    ) -> List[VectorRecord]:
        """
        search_similarities sorted by descending score (stable) and cut to max_results.
        A strict min_score can leave fewer than max_results.
        Raises ValueError on a dimension mismatch or a negative max_results.
        """
        if max_results < 0:
            raise ValueError(f"max_results must be >= 0, got {max_results}")

        results = self.search_similarities(query, min_score)
        results.sort(key=lambda r: r.score, reverse=True)
        top = results[:max_results]

        self.logger.info(
            "Top-N search: returned %d results (requested %d, min_score=%.3f)",
            len(top),
            max_results,
            min_score,
        )
        return top
