# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-05
# Description: RAGService.py
# -----------------------------------------------------------------------------
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from chat.ModelRunnerChat import ModelRunnerChat
from chat.types import Message, system_message, user_message
from config.Config import Config
from core.cancellation import CancellationToken
from embedding.ModelRunnerEmbedder import ModelRunnerEmbedder
from embedding.VectorRecord import VectorRecord
from utility.logging_utils import get_class_logger
from vectorstore.VectorStore import VectorStore


@dataclass
class RAGService:
    """
    RAG Service:
        - embeds chunks and saves them in the vector store
        - retrieves the chunks most similar to a question
        - injects them as a system message
        - streams the answer from the chat model
    """
    cfg: Config
    embedder: ModelRunnerEmbedder
    store: VectorStore
    chat_client: ModelRunnerChat
    logger: logging.Logger | None = None

    system_prompt: str = (
        "You are a useful AI agent.\n"
        "Use only the following documents to answer.\n"
        "If the documents are insufficient, say so.\n"
    )

    max_context_chars: int = 12_000  # keeps small local models within their context window

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)
        self.logger.info(
            "RAGService initialised (store=%s, min_score=%.2f, max_results=%d)",
            type(self.store).__name__,
            self.cfg.similarity_threshold,
            self.cfg.max_results,
        )

    def index_chunks(self, chunks: Iterable[Any], metadata: Optional[Dict[str, Any]] = None) -> List[VectorRecord]:
        records = self.embedder.embed_chunks(chunks, metadata=metadata)
        saved = [self.store.save(r) for r in records]
        self.logger.info("Indexed %d chunks", len(saved))
        return saved

    def retrieve(
            self,
            question: str,
            min_score: Optional[float] = None,
            max_results: Optional[int] = None,
    ) -> List[VectorRecord]:
        q = (question or "").strip()
        if not q:
            raise ValueError("question must not be empty")

        threshold = self.cfg.similarity_threshold if min_score is None else min_score
        limit = self.cfg.max_results if max_results is None else max_results

        query = VectorRecord(embedding=self.embedder.embed_text(q))
        hits = self.store.search_top_n_similarities(query, threshold, limit)

        for h in hits:
            self.logger.debug("hit score=%.4f id=%s text=%r", h.score, h.id, h.text[:80])
        self.logger.info("retrieve: question=%r hits=%d", q[:120], len(hits))
        return hits

    def build_context(self, hits: Sequence[VectorRecord]) -> str:
        """
        Turn hits into a prompt-friendly documents block, best match first.
        """
        parts: List[str] = ["Documents:"]
        total = 0
        for h in hits:
            block = f"<doc>{h.text.strip()}</doc>"
            if total + len(block) > self.max_context_chars:
                if total == 0:
                    # best hit alone is over budget: keep its head
                    room = max(self.max_context_chars - len("<doc></doc>"), 0)
                    parts.append(f"<doc>{h.text.strip()[:room]}</doc>")
                    self.logger.warning("Best hit cut to %d chars to fit the context", room)
                else:
                    self.logger.warning("Context truncated at %d chars", total)
                break
            parts.append(block)
            total += len(block)
        return "\n".join(parts) + "\n"

    def build_messages(self, question: str, hits: Sequence[VectorRecord]) -> List[Message]:
        return [
            system_message(self.system_prompt),
            system_message(self.build_context(hits)),
            user_message(question),
        ]

    def answer_stream(self, question: str, cancel_token: Optional[CancellationToken] = None) -> Iterator[str]:
        hits = self.retrieve(question)
        messages = self.build_messages(question, hits)
        yield from self.chat_client.complete_stream(messages, cancel_token=cancel_token)

    def answer(self, question: str) -> Dict[str, Any]:
        """
            Returns:
            {
                "answer": str,
                "sources": [ {id, score, text, metadata}, ... ],
            }
        """
        hits = self.retrieve(question)
        completion = self.chat_client.complete(
            self.build_messages(question, hits),
            temperature=self.cfg.chat_temperature,
        )
        self.logger.info("answer: answer_chars=%d (done)", len(completion.content))
        return {
            "answer": completion.content,
            "sources": [
                {"id": h.id, "score": h.score, "text": h.text, "metadata": h.metadata}
                for h in hits
            ],
            "model": completion.model,
        }
