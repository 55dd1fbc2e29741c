# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-01
# Description: ToolExecutor
# -----------------------------------------------------------------------------

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from chat.types import ToolSchema
from core.cancellation import CancellationToken


@runtime_checkable
class ToolExecutor(Protocol):
    """
    Something that can run tools by name.

    invoke() returns the tool's text output and raises ToolInvocationError
    (unknown tool, tool failure) or ArgumentParseError (arguments rejected).
    A blocking executor should stop waiting once cancel_token fires.
    """

    def list_tools(self) -> List[ToolSchema]:
        ...

    def invoke(
            self,
            name: str,
            arguments: Dict[str, Any],
            cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        ...
