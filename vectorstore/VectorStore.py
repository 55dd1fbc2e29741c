# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-30
# Description: VectorStore
# -----------------------------------------------------------------------------

from typing import List, Protocol, runtime_checkable

from embedding.VectorRecord import VectorRecord


@runtime_checkable
class VectorStore(Protocol):
    def save(self, record: VectorRecord) -> VectorRecord:
        ...

    def get_all(self) -> List[VectorRecord]:
        ...

    def search_similarities(self, query: VectorRecord, min_score: float) -> List[VectorRecord]:
        ...

    def search_top_n_similarities(
            self,
            query: VectorRecord,
            min_score: float,
            max_results: int,
    ) -> List[VectorRecord]:
        ...
