# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-01
# Description: FunctionToolExecutor
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from chat.types import ToolSchema
from core.cancellation import CancellationToken
from core.exceptions import ArgumentParseError, ToolInvocationError
from tools.ToolExecutor import ToolExecutor
from utility.logging_utils import get_class_logger


def model_parameters(args_model: Type[BaseModel]) -> Dict[str, Any]:
    """JSON Schema of a pydantic model, trimmed to what a function declaration needs."""
    schema = args_model.model_json_schema()
    parameters: Dict[str, Any] = {
        "type": "object",
        "properties": schema.get("properties", {}),
    }
    if schema.get("required"):
        parameters["required"] = schema["required"]
    if schema.get("$defs"):
        parameters["$defs"] = schema["$defs"]
    return parameters


@dataclass(frozen=True)
class _RegisteredTool:
    schema: ToolSchema
    func: Callable[[Any], Any]
    args_model: Type[BaseModel]


class FunctionToolExecutor(ToolExecutor):
    """
    Runs local Python functions as tools.

    Each function takes one argument: an instance of its pydantic args model,
    validated from the JSON arguments the model produced.
    """

    def __init__(self, logger=None) -> None:
        self.logger = logger or get_class_logger(self.__class__)
        self._tools: Dict[str, _RegisteredTool] = {}

    def register(
            self,
            func: Callable[[Any], Any],
            args_model: Type[BaseModel],
            *,
            name: Optional[str] = None,
            description: Optional[str] = None,
    ) -> ToolSchema:
        tool_name = name or func.__name__
        if tool_name in self._tools:
            raise ValueError(f"Tool '{tool_name}' is already registered")

        schema = ToolSchema(
            name=tool_name,
            description=description or (func.__doc__ or "").strip(),
            parameters=model_parameters(args_model),
        )
        self._tools[tool_name] = _RegisteredTool(schema=schema, func=func, args_model=args_model)
        self.logger.debug("Registered tool '%s'", tool_name)
        return schema

    def tool(self, args_model: Type[BaseModel], *, name: Optional[str] = None, description: Optional[str] = None):
        """Decorator form of register()."""
        def decorator(func):
            self.register(func, args_model, name=name, description=description)
            return func
        return decorator

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def list_tools(self) -> List[ToolSchema]:
        return [t.schema for t in self._tools.values()]

    def invoke(
            self,
            name: str,
            arguments: Dict[str, Any],
            cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        registered = self._tools.get(name)
        if registered is None:
            raise ToolInvocationError(f"Tool '{name}' is not registered", tool_name=name)

        try:
            args = registered.args_model.model_validate(arguments)
        except ValidationError as e:
            raise ArgumentParseError(
                f"Arguments for tool '{name}' do not match {registered.args_model.__name__}: {e}",
                tool_name=name,
            ) from e

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        try:
            result = registered.func(args)
        except Exception as e:
            raise ToolInvocationError(f"Tool '{name}' raised {type(e).__name__}: {e}", tool_name=name) from e

        return "" if result is None else str(result)
