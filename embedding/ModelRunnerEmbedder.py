# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-30
# Description: ModelRunnerEmbedder
# -----------------------------------------------------------------------------
from typing import Any, Iterable, List, Optional

import numpy as np
from openai import OpenAIError

from chat.ModelRunnerChat import build_openai_client
from config.Config import Config
from core.exceptions import EmbeddingFailure
from embedding.VectorRecord import VectorRecord
from utility.logging_utils import get_class_logger


class ModelRunnerEmbedder:
    def __init__(
            self,
            cfg: Config,
            *,
            client: Any = None,
            batch_size: int = 32,
            normalize: bool = False,
            logger=None,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        self.cfg = cfg
        self.batch_size = batch_size
        self.normalize = normalize
        self.logger = logger or get_class_logger(self.__class__)

        self.client = client or build_openai_client(cfg)
        self.model = cfg.embeddings_model
        self.logger.info("Model Runner embedder initialised (model=%s)", self.model)

    def _embed_batch(self, texts: List[str]) -> np.ndarray:
        try:
            resp = self.client.embeddings.create(model=self.model, input=texts)
        except OpenAIError as e:
            self.logger.error("Embedding request failed for %d texts: %s", len(texts), e)
            raise EmbeddingFailure(f"Embedding request failed: {e}") from e

        data = sorted(getattr(resp, "data", None) or [], key=lambda d: getattr(d, "index", 0))
        if len(data) != len(texts):
            raise EmbeddingFailure(
                f"Embedding endpoint returned {len(data)} vectors for {len(texts)} inputs"
            )

        arr = np.asarray([d.embedding for d in data], dtype=np.float64)
        if arr.ndim != 2 or arr.shape[1] == 0:
            raise EmbeddingFailure("Embedding endpoint returned empty vectors")

        # Normalize vectors (cosine-friendly)
        if self.normalize:
            norms = np.linalg.norm(arr, axis=1, keepdims=True)
            norms[norms == 0.0] = 1.0
            arr = arr / norms
        return arr

    def embed_text(self, text: str) -> List[float]:
        """Embed a single text (e.g. the user question)."""
        return self.embed_texts([text])[0]

    def embed_texts(self, texts: List[str]) -> List[List[float]]:
        out: List[List[float]] = []
        for i in range(0, len(texts), self.batch_size):
            batch = texts[i:i + self.batch_size]
            out.extend(row.tolist() for row in self._embed_batch(batch))
        self.logger.debug("Embedded %d texts (dim=%d)", len(out), len(out[0]) if out else 0)
        return out

    def embed_chunks(self, chunks: Iterable[Any], metadata: Optional[dict] = None) -> List[VectorRecord]:
        """
        Empties skipped → batch → _embed_batch → VectorRecord list.
        Chunks are plain strings or objects with a .text attribute
        (and optionally .chunk_id / .metadata).
        """
        items: List[Any] = []
        for c in chunks:
            text = c if isinstance(c, str) else getattr(c, "text", "")
            if not text or not text.strip():
                continue
            items.append(c)

        self.logger.info("Embedding %d chunks (batch=%d)", len(items), self.batch_size)

        texts = [c if isinstance(c, str) else c.text for c in items]
        vectors = self.embed_texts(texts)

        out: List[VectorRecord] = []
        for c, text, vec in zip(items, texts, vectors):
            meta = dict(metadata or {})
            extra = getattr(c, "metadata", None)
            if isinstance(extra, dict):
                meta.update(extra)
            out.append(VectorRecord(
                id=getattr(c, "chunk_id", "") or "",
                text=text,
                embedding=vec,
                metadata=meta,
            ))

        self.logger.info("Completed embeddings for %d chunks.", len(out))
        return out
