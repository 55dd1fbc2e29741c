# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-01
# Description: schema_conversion.py
# -----------------------------------------------------------------------------
from typing import Any, Dict, Iterable, List, Sequence

from chat.types import ToolSchema


def _get(tool: Any, *names: str, default: Any = None) -> Any:
    """Read a field from an MCP Tool object or a plain dict, trying several spellings."""
    for name in names:
        if isinstance(tool, dict):
            if name in tool:
                return tool[name]
        elif hasattr(tool, name):
            return getattr(tool, name)
    return default


def mcp_tool_to_schema(tool: Any) -> ToolSchema:
    """
    MCP tool (name, description, inputSchema) -> ToolSchema usable as an OpenAI function.
    Only the object-level "properties" and "required" keys are carried over.
    """
    name = _get(tool, "name")
    if not name:
        raise ValueError(f"MCP tool has no name: {tool!r}")

    input_schema = _get(tool, "inputSchema", "input_schema", default=None) or {}
    parameters: Dict[str, Any] = {
        "type": "object",
        "properties": input_schema.get("properties") or {},
    }
    required = input_schema.get("required")
    if required:
        parameters["required"] = list(required)

    return ToolSchema(
        name=name,
        description=_get(tool, "description", default="") or "",
        parameters=parameters,
    )


def mcp_tools_to_schemas(tools: Iterable[Any]) -> List[ToolSchema]:
    return [mcp_tool_to_schema(t) for t in tools]


def filter_tools(schemas: Sequence[ToolSchema], names: Iterable[str]) -> List[ToolSchema]:
    """Keep only the named tools, in their original order."""
    wanted = set(names)
    return [s for s in schemas if s.name in wanted]


def to_openai_tools(schemas: Sequence[ToolSchema]) -> List[Dict[str, Any]]:
    return [s.to_openai() for s in schemas]
