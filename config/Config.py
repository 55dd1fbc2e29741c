# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-28
# Description: Config
# -----------------------------------------------------------------------------

import os
import shlex
from dataclasses import dataclass, field
from typing import Any, Dict, List

from dotenv import load_dotenv, find_dotenv

from core.exceptions import ConfigurationError

# Load .env once globally; values already exported in the shell win
load_dotenv(find_dotenv(usecwd=True), override=False)


def _env(name: str, default: str = "") -> str:
    """Read env var safely and strip whitespace."""
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return int(v)
    except ValueError as e:
        raise ConfigurationError(f"Env var {name} must be an int, got {v!r}") from e


def _env_float(name: str, default: float) -> float:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return float(v)
    except ValueError as e:
        raise ConfigurationError(f"Env var {name} must be a float, got {v!r}") from e


@dataclass(frozen=True)
class Config:
    # Docker Model Runner (OpenAI-compatible endpoint)
    base_url: str = "http://localhost:12434"
    engine_path: str = "/engines/llama.cpp/v1/"
    api_key: str = "ignored"  # the local runner does not check it, the SDK wants one

    # Models
    chat_model: str = "ai/qwen2.5:latest"
    tools_model: str = "ai/qwen2.5:latest"
    embeddings_model: str = "ai/mxbai-embed-large"

    # Generation / tool loop
    chat_temperature: float = 0.8
    max_passes: int = 2

    # Retrieval
    similarity_threshold: float = 0.6
    max_results: int = 2

    # HTTP client
    request_timeout: float = 120.0
    max_retries: int = 0

    # MCP server launched over stdio
    mcp_command: str = "socat"
    mcp_args: List[str] = field(default_factory=lambda: ["STDIO", "TCP:host.docker.internal:8811"])

    # ---- Single source of truth: field_name -> ENV VAR NAME ----
    ENV_VARS = {
        "base_url": "MODEL_RUNNER_BASE_URL",
        "engine_path": "MODEL_RUNNER_ENGINE_PATH",
        "api_key": "MODEL_RUNNER_API_KEY",
        "chat_model": "MODEL_RUNNER_LLM_CHAT",
        "tools_model": "MODEL_RUNNER_LLM_TOOLS",
        "embeddings_model": "MODEL_RUNNER_LLM_EMBEDDINGS",
        "chat_temperature": "MODEL_RUNNER_CHAT_TEMPERATURE",
        "max_passes": "MODEL_RUNNER_MAX_PASSES",
        "similarity_threshold": "MODEL_RUNNER_SIMILARITY_THRESHOLD",
        "max_results": "MODEL_RUNNER_MAX_RESULTS",
        "request_timeout": "MODEL_RUNNER_REQUEST_TIMEOUT",
        "max_retries": "MODEL_RUNNER_MAX_RETRIES",
        "mcp_command": "MCP_COMMAND",
        "mcp_args": "MCP_ARGS",
    }

    # Convenient *groups* for use in tests / lessons
    MODEL_RUNNER_ENV_VARS = (
        "MODEL_RUNNER_BASE_URL",
        "MODEL_RUNNER_LLM_CHAT",
    )

    @staticmethod
    def from_env() -> "Config":
        """Build Config object from environment variables, falling back to defaults."""
        d = Config()
        e = Config.ENV_VARS
        mcp_args = _env(e["mcp_args"], "")
        return Config(
            base_url=_env(e["base_url"], d.base_url),
            engine_path=_env(e["engine_path"], d.engine_path),
            api_key=_env(e["api_key"], d.api_key),
            chat_model=_env(e["chat_model"], d.chat_model),
            tools_model=_env(e["tools_model"], d.tools_model),
            embeddings_model=_env(e["embeddings_model"], d.embeddings_model),
            chat_temperature=_env_float(e["chat_temperature"], d.chat_temperature),
            max_passes=_env_int(e["max_passes"], d.max_passes),
            similarity_threshold=_env_float(e["similarity_threshold"], d.similarity_threshold),
            max_results=_env_int(e["max_results"], d.max_results),
            request_timeout=_env_float(e["request_timeout"], d.request_timeout),
            max_retries=_env_int(e["max_retries"], d.max_retries),
            mcp_command=_env(e["mcp_command"], d.mcp_command),
            mcp_args=shlex.split(mcp_args) if mcp_args else list(d.mcp_args),
        )

    def __post_init__(self):
        """Fail fast on values the rest of the code cannot work with."""
        missing = [k for k in ("base_url", "chat_model", "tools_model", "embeddings_model")
                   if not getattr(self, k)]
        if missing:
            missing_env_vars = [self.ENV_VARS[f] for f in missing]
            raise ConfigurationError(f"Missing required configuration: {missing_env_vars}")

        if self.max_passes < 1:
            raise ConfigurationError(f"max_passes must be >= 1, got {self.max_passes}")
        if self.max_results < 1:
            raise ConfigurationError(f"max_results must be >= 1, got {self.max_results}")
        if not -1.0 <= self.similarity_threshold <= 1.0:
            raise ConfigurationError(
                f"similarity_threshold must be within [-1, 1], got {self.similarity_threshold}"
            )
        if not 0.0 <= self.chat_temperature <= 2.0:
            raise ConfigurationError(
                f"chat_temperature must be within [0, 2], got {self.chat_temperature}"
            )
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {self.max_retries}")

    @property
    def llm_url(self) -> str:
        """OpenAI-compatible base URL, e.g. http://localhost:12434/engines/llama.cpp/v1/"""
        return self.base_url.rstrip("/") + "/" + self.engine_path.strip("/") + "/"

    def summary(self) -> Dict[str, Any]:
        """Return a safe, non-sensitive summary for logging."""
        return {
            "llm_url": self.llm_url,
            "chat_model": self.chat_model,
            "tools_model": self.tools_model,
            "embeddings_model": self.embeddings_model,
            "chat_temperature": self.chat_temperature,
            "max_passes": self.max_passes,
            "similarity_threshold": self.similarity_threshold,
            "max_results": self.max_results,
            "mcp_command": " ".join([self.mcp_command, *self.mcp_args]),
        }
