# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-07
# Description: lessons/rag_memory_store.py
# -----------------------------------------------------------------------------
# MODEL_RUNNER_BASE_URL=http://localhost:12434 MODEL_RUNNER_LLM_CHAT=ai/qwen2.5:0.5B-F16 python -m lessons.rag_memory_store
import sys

from chat.ModelRunnerChat import ModelRunnerChat
from config.Config import Config
from embedding.ModelRunnerEmbedder import ModelRunnerEmbedder
from services.RAGService import RAGService
from utility.logging_utils import get_logger
from vectorstore.MemoryVectorStore import MemoryVectorStore

logger = get_logger("lessons.rag_memory_store")

CHUNKS = [
    """# The Avengers
    "The Avengers" is a classic British spy-fi television series that aired from 1961 to 1969.
    The series follows secret agents working for a specialized branch of British intelligence,
    battling eccentric villains and foiling bizarre plots to undermine national security.""",
    """# John Steed
    John Steed, portrayed by Patrick Macnee, is the quintessential English gentleman spy
    who never leaves home without his trademark bowler hat and umbrella.""",
    """# Emma Peel
    Emma Peel, played by Diana Rigg, is perhaps the most iconic of Steed's partners.
    A brilliant scientist, martial arts expert, and fashion icon.""",
    """# Tara King
    Tara King, played by Linda Thorson, was Steed's final regular partner in the original series.""",
    """# Mother
    Mother, portrayed by Patrick Newell, is Steed's wheelchair-bound superior who appears in later seasons.""",
]


def main(question: str = "Who is Emma Peel?") -> None:
    cfg = Config.from_env()

    rag = RAGService(
        cfg=cfg,
        embedder=ModelRunnerEmbedder(cfg),
        store=MemoryVectorStore(),
        chat_client=ModelRunnerChat(cfg=cfg),
    )
    rag.index_chunks(CHUNKS)

    for fragment in rag.answer_stream(question):
        print(fragment, end="", flush=True)
    print()


if __name__ == "__main__":
    main(*sys.argv[1:2])
