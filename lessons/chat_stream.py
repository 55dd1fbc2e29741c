# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-06
# Description: lessons/chat_stream.py
# -----------------------------------------------------------------------------
# MODEL_RUNNER_BASE_URL=http://localhost:12434 MODEL_RUNNER_LLM_CHAT=ai/qwen2.5:latest python -m lessons.chat_stream
from chat.ModelRunnerChat import ModelRunnerChat
from chat.types import system_message, user_message
from config.Config import Config
from utility.logging_utils import get_logger

logger = get_logger("lessons.chat_stream")


def main() -> None:
    cfg = Config.from_env()
    logger.info("Model Runner URL: %s, model: %s", cfg.llm_url, cfg.chat_model)

    chat = ModelRunnerChat(cfg=cfg)
    messages = [
        system_message("You are a useful AI agent expert with TV series."),
        user_message("Tell me about the English series called The Avengers?"),
    ]
    for fragment in chat.complete_stream(messages):
        print(fragment, end="", flush=True)
    print()


if __name__ == "__main__":
    main()
