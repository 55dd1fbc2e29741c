# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-02
# Description: MCPToolExecutor
# -----------------------------------------------------------------------------
import asyncio
import concurrent.futures
import threading
import time
from typing import Any, Dict, Iterable, List, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from chat.types import ToolSchema
from config.Config import Config
from core.cancellation import CancellationToken
from core.exceptions import OperationCancelled, ToolInvocationError
from tools.ToolExecutor import ToolExecutor
from tools.schema_conversion import mcp_tools_to_schemas
from utility.logging_utils import get_class_logger


def content_to_text(content: Iterable[Any]) -> str:
    """Concatenate the text blocks of an MCP tool result."""
    parts: List[str] = []
    for block in content or []:
        if getattr(block, "type", None) == "text":
            parts.append(getattr(block, "text", "") or "")
    return "\n".join(parts)


class MCPToolExecutor(ToolExecutor):
    """
    Synchronous facade over an MCP client session talking to a server over stdio.

    The MCP SDK is asyncio based, so the session lives on a private event loop
    running in a daemon thread. The session is opened and closed inside a
    single coroutine (_serve); calls are submitted to that loop and waited on.

    Default server command: `socat STDIO TCP:host.docker.internal:8811`, which
    bridges to the Docker MCP Toolkit gateway.
    """

    def __init__(
            self,
            command: str,
            args: Optional[List[str]] = None,
            env: Optional[Dict[str, str]] = None,
            *,
            allowed_tools: Optional[Iterable[str]] = None,
            startup_timeout: float = 30.0,
            call_timeout: Optional[float] = 120.0,
            poll_interval: float = 0.1,
            logger=None,
    ) -> None:
        self.logger = logger or get_class_logger(self.__class__)
        self.server_params = StdioServerParameters(command=command, args=list(args or []), env=env)
        self.allowed_tools = set(allowed_tools) if allowed_tools is not None else None
        self.startup_timeout = startup_timeout
        self.call_timeout = call_timeout
        self.poll_interval = poll_interval  # how often a pending call checks its cancel token

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._session: Optional[ClientSession] = None
        self._stop: Optional[asyncio.Event] = None
        self._ready: concurrent.futures.Future = concurrent.futures.Future()
        self._serve_future: Optional[concurrent.futures.Future] = None

    @classmethod
    def from_config(cls, cfg: Config, allowed_tools: Optional[Iterable[str]] = None, **kwargs: Any) -> "MCPToolExecutor":
        return cls(cfg.mcp_command, cfg.mcp_args, allowed_tools=allowed_tools, **kwargs)

    # ---- lifecycle ----

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    async def _serve(self) -> None:
        self._stop = asyncio.Event()
        try:
            async with stdio_client(self.server_params) as (read, write):
                async with ClientSession(read, write) as session:
                    await session.initialize()
                    self._session = session
                    self._ready.set_result(True)
                    await self._stop.wait()
        except Exception as e:
            if not self._ready.done():
                self._ready.set_exception(e)
            else:
                self.logger.error("MCP session ended with error: %s", e)
        finally:
            self._session = None

    def start(self) -> "MCPToolExecutor":
        if self._thread is not None:
            return self

        self.logger.info(
            "Starting MCP client: %s %s",
            self.server_params.command,
            " ".join(self.server_params.args),
        )
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run_loop, name="mcp-client", daemon=True)
        self._thread.start()
        self._serve_future = asyncio.run_coroutine_threadsafe(self._serve(), self._loop)

        try:
            self._ready.result(timeout=self.startup_timeout)
        except Exception as e:
            self.close()
            raise ToolInvocationError(f"Failed to initialise MCP client: {e}") from e

        self.logger.info("MCP client initialised")
        return self

    def close(self) -> None:
        if self._loop is None:
            return

        if self._stop is not None:
            self._loop.call_soon_threadsafe(self._stop.set)
        if self._serve_future is not None:
            try:
                self._serve_future.result(timeout=self.startup_timeout)
            except Exception as e:
                self.logger.warning("MCP client did not shut down cleanly: %s", e)

        self._loop.call_soon_threadsafe(self._loop.stop)
        if self._thread is not None:
            self._thread.join(timeout=self.startup_timeout)
        self._loop.close()

        self._loop = None
        self._thread = None
        self._stop = None
        self._serve_future = None
        self._ready = concurrent.futures.Future()
        self.logger.info("MCP client closed")

    def __enter__(self) -> "MCPToolExecutor":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---- calls ----

    def _run(self, make_coro, timeout: Optional[float], cancel_token: Optional[CancellationToken] = None):
        session = self._session
        if session is None or self._loop is None:
            raise ToolInvocationError("MCP client is not started")

        future = asyncio.run_coroutine_threadsafe(make_coro(session), self._loop)
        deadline = time.monotonic() + timeout if timeout is not None else None
        try:
            while True:
                wait = timeout
                if cancel_token is not None:
                    if cancel_token.cancelled:
                        future.cancel()
                        cancel_token.raise_if_cancelled()
                    wait = self.poll_interval
                if deadline is not None:
                    left = deadline - time.monotonic()
                    if left <= 0:
                        raise concurrent.futures.TimeoutError()
                    wait = left if wait is None else min(wait, left)
                try:
                    return future.result(timeout=wait)
                except concurrent.futures.TimeoutError:
                    if cancel_token is None:
                        raise
        except concurrent.futures.TimeoutError as e:
            future.cancel()
            raise ToolInvocationError(f"MCP request timed out after {timeout}s") from e

    def list_tools(self) -> List[ToolSchema]:
        try:
            result = self._run(lambda s: s.list_tools(), self.call_timeout)
        except ToolInvocationError:
            raise
        except Exception as e:
            raise ToolInvocationError(f"Failed to list MCP tools: {e}") from e

        schemas = mcp_tools_to_schemas(result.tools)
        self.logger.info("MCP server offers %d tools", len(schemas))
        if self.allowed_tools is not None:
            schemas = [s for s in schemas if s.name in self.allowed_tools]
            self.logger.info("Kept %d tools after filtering: %s", len(schemas), [s.name for s in schemas])
        return schemas

    def invoke(
            self,
            name: str,
            arguments: Dict[str, Any],
            cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        if self.allowed_tools is not None and name not in self.allowed_tools:
            raise ToolInvocationError(f"Tool '{name}' is not registered", tool_name=name)

        self.logger.debug("Calling MCP tool %s with %s", name, arguments)
        try:
            result = self._run(
                lambda s: s.call_tool(name, arguments=arguments),
                self.call_timeout,
                cancel_token,
            )
        except OperationCancelled:
            self.logger.warning("MCP call to %s cancelled", name)
            raise
        except ToolInvocationError as e:
            e.tool_name = name
            raise
        except Exception as e:
            raise ToolInvocationError(f"MCP call to '{name}' failed: {e}", tool_name=name) from e

        text = content_to_text(result.content)
        if getattr(result, "isError", False):
            raise ToolInvocationError(f"MCP tool '{name}' reported an error: {text}", tool_name=name)
        return text
