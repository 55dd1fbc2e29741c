# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-06
# Description: lessons/embeddings_distances.py
# -----------------------------------------------------------------------------
# MODEL_RUNNER_BASE_URL=http://localhost:12434 python -m lessons.embeddings_distances
from config.Config import Config
from embedding.ModelRunnerEmbedder import ModelRunnerEmbedder
from embedding.VectorRecord import VectorRecord
from utility.logging_utils import get_logger
from vectorstore.MemoryVectorStore import MemoryVectorStore
from vectorstore.similarity import cosine_similarity

logger = get_logger("lessons.embeddings_distances")

CHUNKS = [
    "Lions run in the savannah",
    "Birds fly in the sky",
    "Frogs swim in the pond",
    "Fish swim in the sea",
]


def main(question: str = "Which animals swim?") -> None:
    cfg = Config.from_env()
    embedder = ModelRunnerEmbedder(cfg)

    logger.info("Creating embeddings from user question...")
    question_vector = embedder.embed_text(question)

    logger.info("Creating embeddings from chunks...")
    store = MemoryVectorStore()
    for record in embedder.embed_chunks(CHUNKS):
        store.save(record)
        print(f"Cosine similarity with {record.text!r} = {cosine_similarity(record.embedding, question_vector):.4f}")

    print()
    hits = store.search_top_n_similarities(
        VectorRecord(embedding=question_vector),
        cfg.similarity_threshold,
        cfg.max_results,
    )
    for h in hits:
        print(f"CosineSimilarity: {h.score:.4f} Chunk: {h.text}")
    print(f"Similarities found, total of records {len(hits)}")


if __name__ == "__main__":
    main()
