# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-07
# Description: lessons/tools_chat.py
# -----------------------------------------------------------------------------
# MODEL_RUNNER_BASE_URL=http://localhost:12434 MODEL_RUNNER_LLM_TOOLS=ai/llama3.2 python -m lessons.tools_chat
from pydantic import BaseModel, Field

from agent.ToolsAgent import ToolsAgent
from chat.ModelRunnerChat import ModelRunnerChat
from config.Config import Config
from tools.FunctionToolExecutor import FunctionToolExecutor
from utility.logging_utils import get_logger

logger = get_logger("lessons.tools_chat")


class SayHelloArgs(BaseModel):
    name: str = Field(..., min_length=1, description="The person to greet")


def say_hello(args: SayHelloArgs) -> str:
    """Say hello to the given person name"""
    return f"Hello {args.name}"


def vulcan_salute(args: SayHelloArgs) -> str:
    """Give a vulcan salute to the given person name"""
    return f"🖖 Live long and prosper, {args.name}"


def build_executor() -> FunctionToolExecutor:
    executor = FunctionToolExecutor()
    executor.register(say_hello, SayHelloArgs)
    executor.register(vulcan_salute, SayHelloArgs)
    return executor


def main() -> None:
    cfg = Config.from_env()

    agent = ToolsAgent(
        cfg=cfg,
        chat=ModelRunnerChat(cfg=cfg),
        executor=build_executor(),
        tools_instructions=(
            "Your job is to understand the user prompt and decide if you need to use tools "
            "to run external commands. Ignore all things not related to the usage of a tool."
        ),
    )
    question = (
        "Say hello to Jean-Luc Picard and Say hello to James Kirk and make a Vulcan salute to Spock. "
        "Then generate a nice output with the results and insert fancy emojis between each hello."
    )
    for fragment in agent.ask_stream(question):
        print(fragment, end="", flush=True)
    print()


if __name__ == "__main__":
    main()
