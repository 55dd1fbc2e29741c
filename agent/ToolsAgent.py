# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-04
# Description: ToolsAgent
# -----------------------------------------------------------------------------
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

from agent.ToolCallLoop import LoopResult, ToolCallLoop
from chat.ModelRunnerChat import ModelRunnerChat
from chat.types import Message, ToolSchema, system_message, user_message
from config.Config import Config
from core.cancellation import CancellationToken
from tools.ToolExecutor import ToolExecutor
from utility.logging_utils import get_class_logger


@dataclass
class ToolsAgent:
    """
    Agent wrapper:
        - declares the executor's tools (or an explicit subset)
        - runs the tool-call loop with the tools model
        - streams the final answer with the chat model
    """
    cfg: Config
    chat: ModelRunnerChat
    executor: ToolExecutor
    tool_schemas: Optional[List[ToolSchema]] = None
    system_instructions: str = "You are a useful AI agent."
    tools_instructions: str = "Focus only on the part of the text that is related to tools to call."
    max_workers: int = 1
    logger: logging.Logger | None = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)

        if self.tool_schemas is None:
            self.tool_schemas = self.executor.list_tools()

        self.loop = ToolCallLoop.from_config(
            self.cfg,
            self.chat,
            self.executor,
            self.tool_schemas,
            max_workers=self.max_workers,
        )
        self.logger.info(
            "ToolsAgent initialised (tools=%s, tools_model=%s, chat_model=%s)",
            [t.name for t in self.tool_schemas],
            self.cfg.tools_model,
            self.cfg.chat_model,
        )

    def build_messages(self, question: str, context: Optional[str] = None) -> List[Message]:
        q = (question or "").strip()
        if not q:
            raise ValueError("question must not be empty")

        messages: List[Message] = [system_message(self.system_instructions)]
        if self.tools_instructions:
            messages.append(system_message(self.tools_instructions))
        if context:
            messages.append(system_message(context))
        messages.append(user_message(q))
        return messages

    def run_tools(
            self,
            question: str,
            context: Optional[str] = None,
            cancel_token: Optional[CancellationToken] = None,
    ) -> LoopResult:
        result = self.loop.run(self.build_messages(question, context), cancel_token=cancel_token)
        self.logger.info(
            "Tools execution completed: passes=%d results=%d failures=%d limit_reached=%s",
            result.passes,
            len(result.results),
            len(result.failures),
            result.pass_limit_reached,
        )
        return result

    def ask_stream(
            self,
            question: str,
            context: Optional[str] = None,
            cancel_token: Optional[CancellationToken] = None,
    ) -> Iterator[str]:
        result = self.run_tools(question, context, cancel_token)
        yield from self.loop.stream_answer(
            result.messages,
            model=self.cfg.chat_model,
            temperature=self.cfg.chat_temperature,
            cancel_token=cancel_token,
        )

    def ask(
            self,
            question: str,
            context: Optional[str] = None,
            cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        return "".join(self.ask_stream(question, context, cancel_token))
