# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-11
# Description: test_tool_call_loop.py
# -----------------------------------------------------------------------------
import threading

import pytest

from agent.ToolCallLoop import LoopState, ToolCallLoop
from chat.types import Completion, ToolCall, ToolSchema, system_message, user_message
from core.cancellation import CancellationToken
from core.exceptions import (
    ArgumentParseError,
    CompletionFailure,
    OperationCancelled,
    ToolInvocationError,
)

NAME_PARAMS = {"type": "object", "properties": {"name": {"type": "string"}}, "required": ["name"]}

SAY_HELLO = ToolSchema("say_hello", "Say hello to the given person name", NAME_PARAMS)
UNREGISTERED = ToolSchema("unregistered_tool", "Declared but unknown to the executor", NAME_PARAMS)


class StubCompleter:
    def __init__(self, responses=None, always=None):
        self.responses = list(responses or [])
        self.always = always
        self.calls = []
        self.stream_calls = []

    def complete(self, messages, tools=None, temperature=0.0, model=None, seed=None, parallel_tool_calls=None):
        self.calls.append({
            "messages": list(messages),
            "tools": tools,
            "temperature": temperature,
            "model": model,
            "seed": seed,
        })
        if self.always is not None:
            return self.always(len(self.calls))
        r = self.responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r

    def complete_stream(self, messages, temperature=None, model=None, cancel_token=None):
        self.stream_calls.append({"messages": list(messages), "temperature": temperature, "model": model})
        yield from ["Hello", " ", "world"]


class RecordingExecutor:
    def __init__(self, failing=(), on_invoke=None):
        self.failing = set(failing)
        self.on_invoke = on_invoke
        self.invocations = []
        self.tokens = []
        self._lock = threading.Lock()

    def list_tools(self):
        return [SAY_HELLO]

    def invoke(self, name, arguments, cancel_token=None):
        with self._lock:
            self.invocations.append((name, arguments))
            self.tokens.append(cancel_token)
        if self.on_invoke is not None:
            self.on_invoke(name, arguments)
        if name in self.failing:
            raise ToolInvocationError(f"Tool '{name}' is not registered", tool_name=name)
        return f"Hello {arguments.get('name')}"


def calls(*specs):
    return Completion(content="", tool_calls=[ToolCall(id=i, name=n, arguments=a) for i, n, a in specs])


def no_calls(content="done"):
    return Completion(content=content)


def conversation():
    return [system_message("You are a useful AI agent."), user_message("Say hello to Kirk and Spock")]


def test_requires_a_user_message():
    loop = ToolCallLoop(StubCompleter([no_calls()]), RecordingExecutor(), [SAY_HELLO])
    with pytest.raises(ValueError):
        loop.run([system_message("only system")])


@pytest.mark.parametrize("kwargs", [{"max_passes": 0}, {"max_workers": 0}])
def test_rejects_bad_limits(kwargs):
    with pytest.raises(ValueError):
        ToolCallLoop(StubCompleter(), RecordingExecutor(), [SAY_HELLO], **kwargs)


def test_no_tool_schemas_never_executes():
    completer = StubCompleter([calls(("c1", "say_hello", '{"name": "Kirk"}'))])
    executor = RecordingExecutor()
    loop = ToolCallLoop(completer, executor, [])

    result = loop.run(conversation())

    assert result.final_state is LoopState.DONE
    assert LoopState.EXECUTING not in result.transitions
    assert result.passes == 0
    assert executor.invocations == []
    assert len(completer.calls) == 1
    assert completer.calls[0]["tools"] is None


def test_no_tool_calls_finishes_after_first_request():
    completer = StubCompleter([no_calls()])
    loop = ToolCallLoop(completer, RecordingExecutor(), [SAY_HELLO], model="tools-model")

    result = loop.run(conversation())

    assert result.transitions == [LoopState.IDLE, LoopState.REQUESTING, LoopState.DONE]
    assert result.messages == conversation()
    assert not result.pass_limit_reached


def test_detection_request_is_deterministic_and_uses_tools_model():
    completer = StubCompleter([no_calls()])
    ToolCallLoop(completer, RecordingExecutor(), [SAY_HELLO], model="tools-model").run(conversation())

    request = completer.calls[0]
    assert request["temperature"] == 0.0
    assert request["model"] == "tools-model"
    assert request["tools"] == [SAY_HELLO]
    assert request["seed"] == 0


def test_results_are_appended_with_correlation_ids():
    completer = StubCompleter([
        calls(("call-1", "say_hello", '{"name": "Jean-Luc Picard"}'), ("call-2", "say_hello", '{"name": "Spock"}')),
        no_calls(),
    ])
    loop = ToolCallLoop(completer, RecordingExecutor(), [SAY_HELLO])

    result = loop.run(conversation())

    appended = result.messages[len(conversation()):]
    assert appended[0]["role"] == "assistant"
    assert [tc["id"] for tc in appended[0]["tool_calls"]] == ["call-1", "call-2"]
    assert appended[1] == {"role": "tool", "content": "Hello Jean-Luc Picard", "tool_call_id": "call-1"}
    assert appended[2] == {"role": "tool", "content": "Hello Spock", "tool_call_id": "call-2"}

    # the second request sees the tool results
    assert completer.calls[1]["messages"] == result.messages
    assert result.passes == 1
    assert result.transitions == [
        LoopState.IDLE,
        LoopState.REQUESTING,
        LoopState.EXECUTING,
        LoopState.APPENDING,
        LoopState.REQUESTING,
        LoopState.DONE,
    ]


def test_input_messages_are_not_mutated():
    original = conversation()
    completer = StubCompleter([calls(("c1", "say_hello", '{"name": "Kirk"}')), no_calls()])

    ToolCallLoop(completer, RecordingExecutor(), [SAY_HELLO]).run(original)

    assert original == conversation()


@pytest.mark.parametrize("max_passes", [1, 2, 3])
def test_pass_limit_bounds_cycles_when_model_keeps_calling(max_passes):
    completer = StubCompleter(always=lambda n: calls((f"c{n}", "say_hello", '{"name": "Kirk"}')))
    executor = RecordingExecutor()
    loop = ToolCallLoop(completer, executor, [SAY_HELLO], max_passes=max_passes)

    result = loop.run(conversation())

    assert len(completer.calls) == max_passes
    assert len(executor.invocations) == max_passes
    assert result.passes == max_passes
    assert result.pass_limit_reached
    assert result.transitions[-2:] == [LoopState.PASS_LIMIT_REACHED, LoopState.DONE]


def test_malformed_arguments_are_skipped_and_siblings_run():
    completer = StubCompleter([
        calls(
            ("bad", "say_hello", '{"name": "Kirk"'),
            ("good", "say_hello", '{"name": "Spock"}'),
        ),
        no_calls(),
    ])
    executor = RecordingExecutor()
    result = ToolCallLoop(completer, executor, [SAY_HELLO]).run(conversation())

    assert executor.invocations == [("say_hello", {"name": "Spock"})]
    tool_messages = [m for m in result.messages if m["role"] == "tool"]
    assert [m["tool_call_id"] for m in tool_messages] == ["good"]
    assert [f.call.id for f in result.failures] == ["bad"]
    assert isinstance(result.failures[0].error, ArgumentParseError)


def test_executor_error_is_contained_and_siblings_unaffected():
    completer = StubCompleter([
        calls(
            ("c1", "say_hello", '{"name": "Kirk"}'),
            ("c2", "unregistered_tool", '{"name": "Q"}'),
            ("c3", "say_hello", '{"name": "Spock"}'),
        ),
        no_calls(),
    ])
    executor = RecordingExecutor(failing={"unregistered_tool"})
    result = ToolCallLoop(completer, executor, [SAY_HELLO, UNREGISTERED]).run(conversation())

    assert len(executor.invocations) == 3
    tool_ids = [m["tool_call_id"] for m in result.messages if m["role"] == "tool"]
    assert tool_ids == ["c1", "c3"]
    assistant = [m for m in result.messages if m.get("tool_calls")]
    assert [tc["id"] for tc in assistant[0]["tool_calls"]] == ["c1", "c3"]
    assert isinstance(result.failures[0].error, ToolInvocationError)


def test_undeclared_tool_is_rejected_without_dispatch():
    completer = StubCompleter([calls(("c1", "launch_torpedoes", "{}")), no_calls()])
    executor = RecordingExecutor()

    result = ToolCallLoop(completer, executor, [SAY_HELLO]).run(conversation())

    assert executor.invocations == []
    assert [m for m in result.messages if m["role"] in ("tool", "assistant")] == []
    assert result.failures[0].error.tool_name == "launch_torpedoes"


def test_all_calls_failing_appends_nothing_and_continues():
    completer = StubCompleter([calls(("c1", "say_hello", "not json")), no_calls("sorry")])
    result = ToolCallLoop(completer, RecordingExecutor(), [SAY_HELLO]).run(conversation())

    assert result.messages == conversation()
    assert result.passes == 1
    assert len(completer.calls) == 2


def test_completion_failure_propagates():
    completer = StubCompleter([CompletionFailure("no choices")])
    with pytest.raises(CompletionFailure):
        ToolCallLoop(completer, RecordingExecutor(), [SAY_HELLO]).run(conversation())


def test_cancelled_token_aborts_before_first_request():
    completer = StubCompleter([no_calls()])
    token = CancellationToken()
    token.cancel()

    with pytest.raises(OperationCancelled):
        ToolCallLoop(completer, RecordingExecutor(), [SAY_HELLO]).run(conversation(), cancel_token=token)
    assert completer.calls == []


def test_cancellation_during_pass_stops_next_request():
    token = CancellationToken()
    completer = StubCompleter(always=lambda n: calls((f"c{n}", "say_hello", '{"name": "Kirk"}')))
    executor = RecordingExecutor(on_invoke=lambda name, args: token.cancel())

    with pytest.raises(OperationCancelled):
        ToolCallLoop(completer, executor, [SAY_HELLO], max_passes=5).run(conversation(), cancel_token=token)
    assert len(completer.calls) == 1


def test_expired_deadline_aborts():
    token = CancellationToken.with_timeout(0.0)
    with pytest.raises(OperationCancelled):
        ToolCallLoop(StubCompleter([no_calls()]), RecordingExecutor(), [SAY_HELLO]).run(
            conversation(), cancel_token=token
        )


def test_parallel_execution_keeps_batch_order():
    names = ["Picard", "Kirk", "Spock", "Data", "Worf"]
    completer = StubCompleter([
        calls(*[(f"c{i}", "say_hello", f'{{"name": "{n}"}}') for i, n in enumerate(names)]),
        no_calls(),
    ])
    executor = RecordingExecutor()

    result = ToolCallLoop(completer, executor, [SAY_HELLO], max_workers=4).run(conversation())

    assert len(executor.invocations) == len(names)
    tool_messages = [m for m in result.messages if m["role"] == "tool"]
    assert [m["content"] for m in tool_messages] == [f"Hello {n}" for n in names]
    assert [m["tool_call_id"] for m in tool_messages] == [f"c{i}" for i in range(len(names))]


def test_from_config_uses_tools_model_and_max_passes(cfg):
    loop = ToolCallLoop.from_config(cfg, StubCompleter(), RecordingExecutor(), [SAY_HELLO])
    assert loop.model == "tools-model"
    assert loop.max_passes == 2


def test_stream_answer_runs_final_completion_without_tools():
    completer = StubCompleter([no_calls()])
    loop = ToolCallLoop(completer, RecordingExecutor(), [SAY_HELLO])
    result = loop.run(conversation())

    text = "".join(loop.stream_answer(result.messages, model="chat-model", temperature=0.9))

    assert text == "Hello world"
    assert completer.stream_calls[0]["model"] == "chat-model"
    assert completer.stream_calls[0]["temperature"] == 0.9


class FlakyExecutor(RecordingExecutor):
    """Raises a non-project exception for one tool and returns a non-str for another."""

    def invoke(self, name, arguments, cancel_token=None):
        super().invoke(name, arguments, cancel_token)
        if arguments.get("name") == "Q":
            raise ConnectionError("socket reset")
        if arguments.get("name") == "Data":
            return 42
        return f"Hello {arguments.get('name')}"


@pytest.mark.parametrize("max_workers", [1, 3])
def test_unexpected_executor_error_is_contained(max_workers):
    completer = StubCompleter([
        calls(
            ("flaky", "say_hello", '{"name": "Q"}'),
            ("ok", "say_hello", '{"name": "Spock"}'),
            ("num", "say_hello", '{"name": "Data"}'),
        ),
        no_calls(),
    ])
    executor = FlakyExecutor()

    result = ToolCallLoop(completer, executor, [SAY_HELLO], max_workers=max_workers).run(conversation())

    assert len(executor.invocations) == 3
    tool_messages = [m for m in result.messages if m["role"] == "tool"]
    assert [(m["tool_call_id"], m["content"]) for m in tool_messages] == [("ok", "Hello Spock"), ("num", "42")]
    [failure] = result.failures
    assert failure.call.id == "flaky"
    assert isinstance(failure.error, ToolInvocationError)
    assert failure.error.tool_name == "say_hello"
    assert isinstance(failure.error.__cause__, ConnectionError)


def test_cancellation_raised_by_executor_is_not_contained():
    completer = StubCompleter([calls(("c1", "say_hello", '{"name": "Kirk"}')), no_calls()])

    def stop(name, args):
        raise OperationCancelled("stop")

    executor = RecordingExecutor(on_invoke=stop)

    with pytest.raises(OperationCancelled):
        ToolCallLoop(completer, executor, [SAY_HELLO]).run(conversation())


def test_cancel_token_is_handed_to_the_executor():
    completer = StubCompleter([calls(("c1", "say_hello", '{"name": "Kirk"}')), no_calls()])
    executor = RecordingExecutor()
    token = CancellationToken()

    ToolCallLoop(completer, executor, [SAY_HELLO]).run(conversation(), cancel_token=token)

    assert executor.tokens == [token]
