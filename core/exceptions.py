# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-28
# Description: exceptions.py
# -----------------------------------------------------------------------------
"""
Error taxonomy shared by the chat, embedding, vector store and tool layers.

Failures that stop progress on the whole conversation (embedding, completion)
propagate to the caller. Failures scoped to one tool call (ArgumentParseError,
ToolInvocationError) are caught by the tool-call loop and logged.
"""


class ModelRunnerError(Exception):
    """Base exception for all errors raised by this project."""
    pass


class ConfigurationError(ModelRunnerError):
    """Invalid or missing configuration value."""
    pass


class EmbeddingFailure(ModelRunnerError):
    """The embedding endpoint could not produce a vector for the given text."""
    pass


class CompletionFailure(ModelRunnerError):
    """The completion endpoint errored or returned no usable choice."""
    pass


class ArgumentParseError(ModelRunnerError):
    """A tool call's argument JSON is malformed or does not fit the tool's argument type."""

    def __init__(self, message: str, tool_name: str | None = None, raw_arguments: str | None = None):
        super().__init__(message)
        self.tool_name = tool_name
        self.raw_arguments = raw_arguments


class ToolInvocationError(ModelRunnerError):
    """The tool executor rejected or failed a call (including unregistered tool names)."""

    def __init__(self, message: str, tool_name: str | None = None):
        super().__init__(message)
        self.tool_name = tool_name


class IdentifierGenerationFailure(ModelRunnerError):
    """A record identifier could not be generated."""
    pass


class OperationCancelled(ModelRunnerError):
    """The ambient cancellation token fired (explicit cancel or deadline)."""
    pass
