"""Exceptions raised across genagent.

Tool-level errors (ToolError and subclasses) are caught by the ToolInvoker and handed back to the model as data.
Gateway-level errors (GatewayError and subclasses) end the current run.
"""


class GenAgentError(Exception):
    """Base class for all genagent errors."""


# ------------------------------------------------------------------
# tools
class ToolError(GenAgentError):
    """A tool could not produce a result."""


class DefinitionError(ToolError):
    """A tool definition is malformed, e.g. its code has no entry point."""


class ToolNotImplementedError(DefinitionError):
    """A tool has neither code nor a built-in implementation."""


class ValidationError(ToolError):
    """A tool received arguments it cannot use."""


class ToolExecutionError(ToolError):
    """A tool's implementation failed while running."""


# ------------------------------------------------------------------
# model gateway
class GatewayError(GenAgentError):
    """The model backend did not produce a usable reply."""


class NetworkError(GatewayError):
    """The model backend could not be reached."""


class BackendError(GatewayError):
    """The model backend answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, retry_after: float | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after


class EmptyResponseError(GatewayError):
    """The model backend answered successfully but without any candidate."""


class BlockedError(EmptyResponseError):
    """The model backend withheld its answer for content-safety reasons."""

    def __init__(self, block_reason: str):
        super().__init__(f"Content blocked: {block_reason}")
        self.block_reason = block_reason


class MalformedResponseError(GatewayError):
    """The model backend returned a candidate with no extractable text."""


# ------------------------------------------------------------------
# runs and bundles
class AgentRunError(GenAgentError):
    """A run finished without a final answer."""


class BundleError(GenAgentError):
    """An import bundle is not valid."""
