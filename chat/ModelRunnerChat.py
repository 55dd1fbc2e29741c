# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-29
# Description: ModelRunnerChat
# -----------------------------------------------------------------------------
import json
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Type, TypeVar

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from chat.types import Completion, Message, ToolCall, ToolSchema
from config.Config import Config
from core.cancellation import CancellationToken
from core.exceptions import CompletionFailure
from utility.logging_utils import get_class_logger

ModelT = TypeVar("ModelT", bound=BaseModel)


def build_openai_client(cfg: Config) -> OpenAI:
    """OpenAI SDK client pointed at the local Model Runner engine."""
    return OpenAI(
        base_url=cfg.llm_url,
        api_key=cfg.api_key,
        timeout=cfg.request_timeout,
        max_retries=cfg.max_retries,
    )


@dataclass
class ModelRunnerChat:
    """
        Chat wrapper over the OpenAI-compatible Model Runner endpoint.

        Expected Config fields:
          cfg.llm_url, cfg.api_key
          cfg.chat_model   (free-form generation)
          cfg.tools_model  (tool detection)
          cfg.chat_temperature
    """

    cfg: Config
    client: Any = None
    logger: Any = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)

        if not self.cfg.chat_model:
            raise ValueError("Config missing chat_model.")

        self.model = self.cfg.chat_model
        self.client = self.client or build_openai_client(self.cfg)

        self.logger.info("ModelRunnerChat initialised (url=%s, model=%s)", self.cfg.llm_url, self.model)

    def _params(
            self,
            messages: Sequence[Message],
            *,
            model: Optional[str],
            temperature: float,
            tools: Optional[Sequence[ToolSchema]] = None,
            seed: Optional[int] = None,
            parallel_tool_calls: Optional[bool] = None,
            response_format: Optional[Dict[str, Any]] = None,
            extra_params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not messages:
            raise ValueError("messages must be non-empty.")

        params: Dict[str, Any] = {
            "model": model or self.model,
            "messages": list(messages),
            "temperature": temperature,
        }
        if tools:
            params["tools"] = [t.to_openai() for t in tools]
            if parallel_tool_calls is not None:
                params["parallel_tool_calls"] = parallel_tool_calls
        if seed is not None:
            params["seed"] = seed
        if response_format is not None:
            params["response_format"] = response_format
        if extra_params:
            params.update(extra_params)
        return params

    # Standard chat call
    def complete(
            self,
            messages: Sequence[Message],
            tools: Optional[Sequence[ToolSchema]] = None,
            temperature: float = 0.0,
            model: Optional[str] = None,
            seed: Optional[int] = None,
            parallel_tool_calls: Optional[bool] = None,
            response_format: Optional[Dict[str, Any]] = None,
            extra_params: Optional[Dict[str, Any]] = None,
    ) -> Completion:
        params = self._params(
            messages,
            model=model,
            temperature=temperature,
            tools=tools,
            seed=seed,
            parallel_tool_calls=parallel_tool_calls,
            response_format=response_format,
            extra_params=extra_params,
        )

        self.logger.debug(
            "Chat request: model=%s temp=%s messages=%d tools=%d",
            params["model"], temperature, len(params["messages"]), len(tools or []),
        )

        try:
            resp = self.client.chat.completions.create(**params)
        except OpenAIError as e:
            self.logger.error("Chat completion failed: %s", e)
            raise CompletionFailure(f"Chat completion failed: {e}") from e

        self.logger.debug("Raw ChatCompletion response: %r", resp)

        if not getattr(resp, "choices", None):
            raise CompletionFailure("Chat completion returned no choices")

        choice = resp.choices[0]
        message = choice.message
        tool_calls: List[ToolCall] = []
        for tc in getattr(message, "tool_calls", None) or []:
            fn = getattr(tc, "function", None)
            if fn is None:
                self.logger.warning("Ignoring non-function tool call: %r", tc)
                continue
            tool_calls.append(ToolCall(id=tc.id, name=fn.name, arguments=fn.arguments or ""))

        return Completion(
            content=message.content or "",
            tool_calls=tool_calls,
            model=getattr(resp, "model", None),
            usage=getattr(resp, "usage", None),
            finish_reason=getattr(choice, "finish_reason", None),
        )

    # Streaming chat call
    def complete_stream(
            self,
            messages: Sequence[Message],
            temperature: Optional[float] = None,
            model: Optional[str] = None,
            cancel_token: Optional[CancellationToken] = None,
            extra_params: Optional[Dict[str, Any]] = None,
    ) -> Iterator[str]:
        """
        Yield content fragments as they arrive. Closing the generator early
        closes the underlying HTTP stream.
        """
        temp = self.cfg.chat_temperature if temperature is None else temperature
        params = self._params(messages, model=model, temperature=temp, extra_params=extra_params)
        params["stream"] = True

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        try:
            stream = self.client.chat.completions.create(**params)
        except OpenAIError as e:
            self.logger.error("Streaming chat completion failed: %s", e)
            raise CompletionFailure(f"Streaming chat completion failed: {e}") from e

        try:
            for event in stream:
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()
                if not getattr(event, "choices", None):
                    continue
                delta = event.choices[0].delta
                if delta and getattr(delta, "content", None):
                    yield delta.content
        except OpenAIError as e:
            self.logger.error("Chat stream interrupted: %s", e)
            raise CompletionFailure(f"Chat stream interrupted: {e}") from e
        finally:
            close = getattr(stream, "close", None)
            if callable(close):
                close()

    # Structured output
    def complete_json(
            self,
            messages: Sequence[Message],
            schema_name: str,
            schema: Dict[str, Any],
            description: Optional[str] = None,
            model: Optional[str] = None,
            temperature: float = 0.0,
    ) -> Dict[str, Any]:
        """
        Ask for output constrained by a JSON schema (response_format=json_schema)
        and return it parsed.
        """
        json_schema: Dict[str, Any] = {"name": schema_name, "schema": schema, "strict": True}
        if description:
            json_schema["description"] = description

        completion = self.complete(
            messages,
            temperature=temperature,
            model=model,
            response_format={"type": "json_schema", "json_schema": json_schema},
        )
        if not completion.content:
            raise CompletionFailure("Structured completion returned no content")

        try:
            data = json.loads(completion.content)
        except json.JSONDecodeError as e:
            self.logger.error("Structured completion is not valid JSON: %r", completion.content[:200])
            raise CompletionFailure(f"Structured completion is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise CompletionFailure(f"Structured completion must be a JSON object, got {type(data).__name__}")
        return data

    def complete_model(
            self,
            messages: Sequence[Message],
            model_cls: Type[ModelT],
            description: Optional[str] = None,
            model: Optional[str] = None,
    ) -> ModelT:
        """Structured output validated into a pydantic model."""
        data = self.complete_json(
            messages,
            schema_name=model_cls.__name__,
            schema=model_cls.model_json_schema(),
            description=description,
            model=model,
        )
        try:
            return model_cls.model_validate(data)
        except ValidationError as e:
            raise CompletionFailure(f"Structured completion does not match {model_cls.__name__}: {e}") from e

    # Convenience helper functions
    def simple_chat(
            self,
            user_text: str,
            system_text: Optional[str] = None,
            **kwargs: Any,
    ) -> dict:
        messages: List[Message] = []
        if system_text:
            messages.append({"role": "system", "content": system_text})
        messages.append({"role": "user", "content": user_text})

        completion = self.complete(messages, **kwargs)

        self.logger.info("Chat answer generated (model=%s)", completion.model)
        self.logger.debug("Token usage: %r", completion.usage)

        return {
            "answer": completion.content,
            "usage": completion.usage,
            "model": completion.model,
        }

    def healthcheck(self) -> bool:
        try:
            _ = self.simple_chat("ping", temperature=0.0, extra_params={"max_tokens": 5})
            return True
        except CompletionFailure as e:
            self.logger.warning("Chat healthcheck failed: %s", e)
            return False
