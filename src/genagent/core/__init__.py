"""Core components of the agent execution loop.

This module provides tool definitions and their execution, function-call parsing,
prompt assembly, the Gemini model gateway, and the Agent that ties them together.
"""

from .agent import MAX_ITERATIONS, Agent, AgentRun, RunStatus
from .base import ExecutionLogSink, KnowledgeRetriever, ToolStore
from .bundle import ImportedBundle, export_bundle, generate_unique_name, import_bundle
from .exceptions import (
    AgentRunError,
    BackendError,
    BlockedError,
    BundleError,
    DefinitionError,
    EmptyResponseError,
    GatewayError,
    GenAgentError,
    MalformedResponseError,
    NetworkError,
    ToolError,
    ToolExecutionError,
    ToolNotImplementedError,
    ValidationError,
)
from .gateway import ModelGateway
from .invoker import ToolInvoker
from .parser import parse_function_calls
from .prompt import PromptAssembler, retrieve_knowledge
from .registry import InMemoryToolStore, ToolRegistry
from .runner import InMemoryExecutionLog, format_response, run_agent
from .tool import Tool, ToolDefinition, ToolParameter, tool

__all__ = [
    # Base protocols
    "ExecutionLogSink",
    "KnowledgeRetriever",
    "ToolStore",
    # Tools
    "Tool",
    "ToolDefinition",
    "ToolParameter",
    "tool",
    "InMemoryToolStore",
    "ToolRegistry",
    "ToolInvoker",
    # Agent loop
    "Agent",
    "AgentRun",
    "MAX_ITERATIONS",
    "ModelGateway",
    "PromptAssembler",
    "RunStatus",
    "parse_function_calls",
    "retrieve_knowledge",
    # Runner
    "InMemoryExecutionLog",
    "format_response",
    "run_agent",
    # Bundles
    "ImportedBundle",
    "export_bundle",
    "generate_unique_name",
    "import_bundle",
    # Exceptions
    "AgentRunError",
    "BackendError",
    "BlockedError",
    "BundleError",
    "DefinitionError",
    "EmptyResponseError",
    "GatewayError",
    "GenAgentError",
    "MalformedResponseError",
    "NetworkError",
    "ToolError",
    "ToolExecutionError",
    "ToolNotImplementedError",
    "ValidationError",
]
