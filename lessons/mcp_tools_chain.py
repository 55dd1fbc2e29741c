# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-09
# Description: lessons/mcp_tools_chain.py
# -----------------------------------------------------------------------------
# MODEL_RUNNER_BASE_URL=http://model-runner.docker.internal MODEL_RUNNER_LLM_TOOLS=ai/qwen2.5:latest \
#   MODEL_RUNNER_LLM_CHAT=ai/qwen2.5:latest python -m lessons.mcp_tools_chain
from agent.ToolsAgent import ToolsAgent
from chat.ModelRunnerChat import ModelRunnerChat
from config.Config import Config
from core.cancellation import CancellationToken
from tools.MCPToolExecutor import MCPToolExecutor
from utility.logging_utils import get_logger

logger = get_logger("lessons.mcp_tools_chain")

ALLOWED_TOOLS = ("brave_web_search", "fetch")

QUESTION = """
Search information about hawaiian pizza.(only 3 results)

Then fetch the URLs from the search information results.

Make a structured detailed report with all the results,
The output format MUST be in markdown.
"""


def main(timeout_seconds: float = 600.0) -> None:
    cfg = Config.from_env()
    logger.info("Config: %s", cfg.summary())

    with MCPToolExecutor.from_config(cfg, allowed_tools=ALLOWED_TOOLS) as executor:
        agent = ToolsAgent(
            cfg=cfg,
            chat=ModelRunnerChat(cfg=cfg),
            executor=executor,
            system_instructions="You are a pizza expert.",
        )
        token = CancellationToken.with_timeout(timeout_seconds)
        for fragment in agent.ask_stream(QUESTION, cancel_token=token):
            print(fragment, end="", flush=True)
        print()


if __name__ == "__main__":
    main()
