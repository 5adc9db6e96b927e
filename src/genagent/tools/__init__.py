"""Built-in tools with fixed behavior."""

from uuid import uuid4

from .numeric import calculator, data_analyzer
from .system import current_datetime, uuid_generator
from .web import api_caller
from ..core.tool import Tool, ToolDefinition

BUILTIN_TOOLS: dict[str, Tool] = {
    t.name: t
    for t in (
        calculator,
        data_analyzer,
        api_caller,
        current_datetime,
        uuid_generator,
    )
}


def default_tool_definitions() -> list[ToolDefinition]:
    """Fresh copies of the built-in definitions, for seeding a tool store."""
    return [t.definition.model_copy(update={"id": str(uuid4())}, deep=True) for t in BUILTIN_TOOLS.values()]


__all__ = [
    "BUILTIN_TOOLS",
    "default_tool_definitions",
    "api_caller",
    "calculator",
    "current_datetime",
    "data_analyzer",
    "uuid_generator",
]
