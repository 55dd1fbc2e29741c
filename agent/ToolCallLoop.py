# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-03
# Description: ToolCallLoop
# -----------------------------------------------------------------------------
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, List, Optional, Protocol, Sequence, Tuple

from chat.types import (
    Completion,
    Message,
    ToolCall,
    ToolSchema,
    assistant_tool_calls_message,
    parse_tool_arguments,
    tool_message,
)
from config.Config import Config
from core.cancellation import CancellationToken
from core.exceptions import ArgumentParseError, OperationCancelled, ToolInvocationError
from tools.ToolExecutor import ToolExecutor
from utility.logging_utils import get_class_logger


class Completer(Protocol):
    def complete(
            self,
            messages: Sequence[Message],
            tools: Optional[Sequence[ToolSchema]] = None,
            temperature: float = 0.0,
            model: Optional[str] = None,
            seed: Optional[int] = None,
            parallel_tool_calls: Optional[bool] = None,
    ) -> Completion:
        ...

    def complete_stream(
            self,
            messages: Sequence[Message],
            temperature: Optional[float] = None,
            model: Optional[str] = None,
            cancel_token: Optional[CancellationToken] = None,
    ) -> Iterator[str]:
        ...


class LoopState(Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    EXECUTING = "executing"
    APPENDING = "appending"
    PASS_LIMIT_REACHED = "pass_limit_reached"
    DONE = "done"


@dataclass(frozen=True)
class ToolCallResult:
    call: ToolCall
    content: str


@dataclass(frozen=True)
class ToolCallFailure:
    call: ToolCall
    error: Exception


@dataclass
class LoopResult:
    messages: List[Message]
    passes: int
    final_state: LoopState
    pass_limit_reached: bool = False
    results: List[ToolCallResult] = field(default_factory=list)
    failures: List[ToolCallFailure] = field(default_factory=list)
    transitions: List[LoopState] = field(default_factory=list)


class ToolCallLoop:
    """
    Bounded detect → execute → append loop.

    Each pass sends the whole conversation plus the declared tools to the
    tools model at temperature 0. Returned tool calls are executed through the
    ToolExecutor; every successful result is appended as a tool message
    carrying the call id. The loop ends when the model requests no tool, or
    after max_passes request/execute cycles.

    A call that cannot be parsed, names an undeclared tool, or fails in the
    executor is logged and left out of the conversation; its siblings still run.
    A failed completion request propagates.
    """

    def __init__(
            self,
            completer: Completer,
            executor: ToolExecutor,
            tool_schemas: Sequence[ToolSchema],
            *,
            model: Optional[str] = None,
            max_passes: int = 2,
            max_workers: int = 1,
            seed: Optional[int] = 0,
            logger=None,
    ) -> None:
        if max_passes < 1:
            raise ValueError(f"max_passes must be >= 1, got {max_passes}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")

        self.completer = completer
        self.executor = executor
        self.tool_schemas = list(tool_schemas)
        self.model = model
        self.max_passes = max_passes
        self.max_workers = max_workers
        self.seed = seed
        self.logger = logger or get_class_logger(self.__class__)

        self.state = LoopState.IDLE
        self.pending_tool_calls: List[ToolCall] = []
        self._declared = {s.name for s in self.tool_schemas}

    @classmethod
    def from_config(
            cls,
            cfg: Config,
            completer: Completer,
            executor: ToolExecutor,
            tool_schemas: Sequence[ToolSchema],
            **kwargs: Any,
    ) -> "ToolCallLoop":
        kwargs.setdefault("model", cfg.tools_model)
        kwargs.setdefault("max_passes", cfg.max_passes)
        return cls(completer, executor, tool_schemas, **kwargs)

    def _enter(self, state: LoopState, transitions: List[LoopState]) -> None:
        self.state = state
        transitions.append(state)

    def run(self, messages: Sequence[Message], cancel_token: Optional[CancellationToken] = None) -> LoopResult:
        if not any(m.get("role") == "user" for m in messages):
            raise ValueError("conversation must contain at least one user message")

        conversation: List[Message] = list(messages)
        transitions: List[LoopState] = []
        results: List[ToolCallResult] = []
        failures: List[ToolCallFailure] = []
        passes = 0
        pass_limit_reached = False

        self._enter(LoopState.IDLE, transitions)
        self.pending_tool_calls = []

        while True:
            if passes >= self.max_passes:
                self._enter(LoopState.PASS_LIMIT_REACHED, transitions)
                pass_limit_reached = True
                self.logger.info("Pass limit reached (%d); stopping tool detection", self.max_passes)
                break

            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            self._enter(LoopState.REQUESTING, transitions)
            completion = self.completer.complete(
                conversation,
                tools=self.tool_schemas or None,
                temperature=0.0,
                model=self.model,
                seed=self.seed,
                parallel_tool_calls=True if self.tool_schemas else None,
            )

            calls = completion.tool_calls
            if calls and not self.tool_schemas:
                self.logger.warning("Ignoring %d tool calls: no tools were declared", len(calls))
                calls = []
            self.pending_tool_calls = list(calls)

            if not calls:
                self.logger.info("No tool call detected (pass %d)", passes + 1)
                break

            passes += 1
            self.logger.info("Pass %d: %d tool calls detected", passes, len(calls))

            self._enter(LoopState.EXECUTING, transitions)
            batch_results, batch_failures = self._execute_batch(calls, cancel_token)
            results.extend(batch_results)
            failures.extend(batch_failures)

            self._enter(LoopState.APPENDING, transitions)
            if batch_results:
                conversation.append(assistant_tool_calls_message([r.call for r in batch_results]))
                conversation.extend(tool_message(r.content, r.call.id) for r in batch_results)

            self.logger.info(
                "Pass %d executed: %d succeeded, %d failed",
                passes,
                len(batch_results),
                len(batch_failures),
            )

        self._enter(LoopState.DONE, transitions)
        self.pending_tool_calls = []

        return LoopResult(
            messages=conversation,
            passes=passes,
            final_state=LoopState.DONE,
            pass_limit_reached=pass_limit_reached,
            results=results,
            failures=failures,
            transitions=transitions,
        )

    def _execute_batch(
            self,
            calls: Sequence[ToolCall],
            cancel_token: Optional[CancellationToken],
    ) -> Tuple[List[ToolCallResult], List[ToolCallFailure]]:
        if self.max_workers > 1 and len(calls) > 1:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(calls))) as pool:
                outcomes = list(pool.map(lambda c: self._execute_contained(c, cancel_token), calls))
        else:
            outcomes = [self._execute_contained(c, cancel_token) for c in calls]

        results = [o for o in outcomes if isinstance(o, ToolCallResult)]
        failures = [o for o in outcomes if isinstance(o, ToolCallFailure)]
        return results, failures

    def _execute_contained(self, call: ToolCall, cancel_token: Optional[CancellationToken]):
        try:
            return ToolCallResult(call=call, content=self.execute_call(call, cancel_token))
        except ArgumentParseError as e:
            self.logger.warning("Skipping tool call %s (%s): bad arguments: %s", call.id, call.name, e)
            return ToolCallFailure(call=call, error=e)
        except ToolInvocationError as e:
            self.logger.error("Tool call %s (%s) failed: %s", call.id, call.name, e)
            return ToolCallFailure(call=call, error=e)
        except OperationCancelled:
            raise
        except Exception as e:
            # any other executor error fails this call only
            self.logger.exception("Tool call %s (%s) raised %s", call.id, call.name, type(e).__name__)
            error = ToolInvocationError(f"Tool '{call.name}' raised {type(e).__name__}: {e}", tool_name=call.name)
            error.__cause__ = e
            return ToolCallFailure(call=call, error=error)

    def execute_call(self, call: ToolCall, cancel_token: Optional[CancellationToken] = None) -> str:
        """Run one tool call; raises ArgumentParseError or ToolInvocationError."""
        if call.name not in self._declared:
            raise ToolInvocationError(f"Tool '{call.name}' is not registered", tool_name=call.name)

        arguments = parse_tool_arguments(call.arguments, tool_name=call.name)

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        self.logger.info("Calling %s %s", call.name, call.arguments)
        content = self.executor.invoke(call.name, arguments, cancel_token=cancel_token)
        content = "" if content is None else str(content)
        self.logger.debug("Tool %s response: %s", call.name, content[:500])
        return content

    def stream_answer(
            self,
            messages: Sequence[Message],
            *,
            model: Optional[str] = None,
            temperature: Optional[float] = None,
            cancel_token: Optional[CancellationToken] = None,
    ) -> Iterator[str]:
        """Final free-form completion over the accumulated conversation, without tools."""
        return self.completer.complete_stream(
            messages,
            temperature=temperature,
            model=model,
            cancel_token=cancel_token,
        )
