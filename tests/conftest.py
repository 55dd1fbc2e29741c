# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-10
# Description: conftest.py
# -----------------------------------------------------------------------------

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pytest

# add project root to sys.path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from config.Config import Config  # noqa: E402


class FakeStream:
    """Stands in for the SDK's Stream[ChatCompletionChunk]."""

    def __init__(self, fragments: Sequence[Optional[str]]):
        self.fragments = list(fragments)
        self.closed = False
        self.consumed = 0

    def __iter__(self):
        for f in self.fragments:
            self.consumed += 1
            if f is None:
                # keep-alive chunk without choices
                yield SimpleNamespace(choices=[])
            else:
                yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=f))])

    def close(self):
        self.closed = True


class FakeOpenAIClient:
    """
    Minimal in-process replacement for openai.OpenAI:
    client.chat.completions.create(...) and client.embeddings.create(...).
    """

    def __init__(self) -> None:
        self.chat_responses: List[Any] = []
        self.stream_fragments: List[Optional[str]] = []
        self.streams: List[FakeStream] = []
        self.embedding_fn: Callable[[str], List[float]] = lambda text: [float(len(text)), 1.0]
        self.embedding_error: Optional[Exception] = None
        self.requests: List[Dict[str, Any]] = []
        self.embedding_requests: List[Dict[str, Any]] = []

        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create_chat))
        self.embeddings = SimpleNamespace(create=self._create_embeddings)

    def queue_chat(
            self,
            content: Optional[str] = "",
            tool_calls: Optional[List[Tuple[str, str, str]]] = None,
            model: str = "fake-model",
    ) -> None:
        calls = [
            SimpleNamespace(id=cid, type="function", function=SimpleNamespace(name=name, arguments=args))
            for cid, name, args in (tool_calls or [])
        ]
        message = SimpleNamespace(content=content, tool_calls=calls or None)
        self.chat_responses.append(SimpleNamespace(
            choices=[SimpleNamespace(message=message, finish_reason="tool_calls" if calls else "stop")],
            model=model,
            usage={"total_tokens": 3},
        ))

    def queue_raw(self, response: Any) -> None:
        self.chat_responses.append(response)

    def _create_chat(self, **params):
        self.requests.append(params)
        if params.get("stream"):
            stream = FakeStream(self.stream_fragments)
            self.streams.append(stream)
            return stream

        resp = self.chat_responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp

    def _create_embeddings(self, model: str, input: List[str]):
        self.embedding_requests.append({"model": model, "input": list(input)})
        if self.embedding_error is not None:
            raise self.embedding_error
        return SimpleNamespace(data=[
            SimpleNamespace(index=i, embedding=self.embedding_fn(text))
            for i, text in enumerate(input)
        ])


@pytest.fixture
def cfg() -> Config:
    return Config(
        base_url="http://localhost:12434",
        chat_model="chat-model",
        tools_model="tools-model",
        embeddings_model="embed-model",
        chat_temperature=0.9,
        max_passes=2,
        similarity_threshold=0.6,
        max_results=2,
    )


@pytest.fixture
def fake_openai() -> FakeOpenAIClient:
    return FakeOpenAIClient()
