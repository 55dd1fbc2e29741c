# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-13
# Description: test_rag_service.py
# -----------------------------------------------------------------------------
import pytest

from chat.ModelRunnerChat import ModelRunnerChat
from embedding.ModelRunnerEmbedder import ModelRunnerEmbedder
from embedding.VectorRecord import VectorRecord
from services.RAGService import RAGService
from vectorstore.MemoryVectorStore import MemoryVectorStore

VECTORS = {
    "Lions run in the savannah": [0.0, 1.0, 0.0],
    "Birds fly in the sky": [0.0, 0.0, 1.0],
    "Frogs swim in the pond": [0.8, 0.6, 0.0],
    "Fish swim in the sea": [0.9, 0.1, 0.1],
    "Which animals swim?": [1.0, 0.0, 0.0],
}


@pytest.fixture
def rag(cfg, fake_openai) -> RAGService:
    fake_openai.embedding_fn = lambda text: VECTORS[text]
    service = RAGService(
        cfg=cfg,
        embedder=ModelRunnerEmbedder(cfg, client=fake_openai),
        store=MemoryVectorStore(),
        chat_client=ModelRunnerChat(cfg=cfg, client=fake_openai),
    )
    service.index_chunks([t for t in VECTORS if not t.endswith("?")])
    return service


def test_index_chunks_saves_records(rag):
    assert len(rag.store.get_all()) == 4
    assert all(r.id for r in rag.store.get_all())


def test_retrieve_returns_swim_chunks(rag):
    hits = rag.retrieve("Which animals swim?")
    assert [h.text for h in hits] == ["Fish swim in the sea", "Frogs swim in the pond"]


def test_retrieve_overrides(rag):
    assert len(rag.retrieve("Which animals swim?", min_score=0.0, max_results=4)) == 4
    assert rag.retrieve("Which animals swim?", min_score=0.99) == []


def test_retrieve_rejects_empty_question(rag):
    with pytest.raises(ValueError):
        rag.retrieve("   ")


def test_build_context_wraps_documents(rag):
    context = rag.build_context([VectorRecord(text="Fish swim in the sea"), VectorRecord(text="Frogs")])
    assert context == "Documents:\n<doc>Fish swim in the sea</doc>\n<doc>Frogs</doc>\n"


def test_build_context_respects_char_budget(rag):
    rag.max_context_chars = 40
    context = rag.build_context([VectorRecord(text="x" * 20), VectorRecord(text="y" * 20)])
    assert "x" * 20 in context
    assert "y" not in context


def test_answer_stream_injects_context(rag, fake_openai):
    fake_openai.stream_fragments = ["Frogs ", "and fish."]

    answer = "".join(rag.answer_stream("Which animals swim?"))

    assert answer == "Frogs and fish."
    sent = fake_openai.requests[-1]["messages"]
    assert [m["role"] for m in sent] == ["system", "system", "user"]
    assert "<doc>Fish swim in the sea</doc>" in sent[1]["content"]
    assert "Lions" not in sent[1]["content"]
    assert sent[2]["content"] == "Which animals swim?"


def test_answer_returns_sources(rag, fake_openai):
    fake_openai.queue_chat("Frogs and fish swim.")

    resp = rag.answer("Which animals swim?")

    assert resp["answer"] == "Frogs and fish swim."
    assert [s["text"] for s in resp["sources"]] == ["Fish swim in the sea", "Frogs swim in the pond"]
    assert resp["sources"][0]["score"] > resp["sources"][1]["score"]


def test_build_context_cuts_oversized_best_hit(rag):
    rag.max_context_chars = 21
    context = rag.build_context([VectorRecord(text="Fish swim in the sea"), VectorRecord(text="Frogs")])
    assert context == "Documents:\n<doc>Fish swim </doc>\n"
