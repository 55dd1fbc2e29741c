# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-30
# Description: VectorRecord
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class VectorRecord:
    """
    Embedding vector + original text.

    `score` is only meaningful on the copies returned by a similarity search;
    `id` is assigned by the store when left empty.
    """
    text: str = ""
    embedding: List[float] = field(default_factory=list)
    id: str = ""
    score: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)
