"""Execution of a single tool call.

The ToolInvoker runs a tool's own code when it has some, otherwise dispatches to a built-in of the same name.
Whatever happens, the caller receives a result mapping: tool failures become
``{"error": True, "message": ..., "tool_name": ..., "error_type": ...}`` so the model can react to them.

Tool code is ordinary Python defining an ``execute(args)`` entry point, sync or async:

    async def execute(args):
        return {"success": True, "greeting": f"Hello, {args['name']}!"}

WARNING: tool code runs in-process with full interpreter privileges.
Only load tool code from sources you trust.
"""

from __future__ import annotations

import builtins
import logging
from typing import Any, Callable, Mapping

from .exceptions import DefinitionError, ToolNotImplementedError
from .tool import Tool, ToolDefinition, failure_result, normalize_result
from ..types_.base import Arguments
from ..utilities.async_helpers import synchronize

logger = logging.getLogger(__name__)

ENTRY_POINT = "execute"


def load_entry_point(tool: ToolDefinition) -> Callable[[Arguments], Any]:
    """Compile a tool's code in a fresh namespace and return its entry point.

    Raises
    ------
    DefinitionError
        If the code does not compile or defines no callable entry point.
    """
    namespace: dict[str, Any] = {"__builtins__": builtins, "__name__": f"genagent_tool_{tool.name}"}
    try:
        compiled = compile(tool.code or "", f"<tool:{tool.name}>", "exec")
    except SyntaxError as e:
        raise DefinitionError(f"Tool '{tool.name}' code does not compile: {e}") from e

    exec(compiled, namespace)  # NOQA: S102

    entry_point = namespace.get(ENTRY_POINT)
    if not callable(entry_point):
        raise DefinitionError(f"Tool '{tool.name}' code has no entry point: define a function named '{ENTRY_POINT}'")
    return entry_point


class ToolInvoker:
    """Run tool calls and normalize their outcome.

    Parameters
    ----------
    builtin_tools : Mapping[str, Tool] | None
        Built-in implementations by tool name; defaults to the tools in ``genagent.tools``.
    """

    def __init__(self, builtin_tools: Mapping[str, Tool] | None = None):
        if builtin_tools is None:
            from ..tools import BUILTIN_TOOLS

            builtin_tools = BUILTIN_TOOLS
        self.builtin_tools = dict(builtin_tools)

    def invoke(self, tool: ToolDefinition, arguments: Arguments | None = None) -> dict[str, Any]:
        """Execute one tool call.

        Never raises for tool-level failures, including ``exit()`` in tool code and results
        that cannot be serialized; they are returned as a failure mapping.
        KeyboardInterrupt still propagates.

        Parameters
        ----------
        tool : ToolDefinition
            The tool to run.
        arguments : Arguments | None
            The argument bag from the model's function call.

        Returns
        -------
        dict[str, Any]
            The tool's result, or a structured failure.
        """
        arguments = {} if arguments is None else arguments
        logger.debug(f"Executing tool '{tool.name}' with args={arguments}")
        try:
            return normalize_result(synchronize(self._dispatch(tool, arguments)))
        except (Exception, SystemExit) as e:  # NOQA: BLE001
            logger.warning(f"Tool '{tool.name}' failed: {e.__class__.__name__}: {e}")
            logger.debug("Tool failure traceback", exc_info=True)
            return failure_result(tool.name, e)

    def _dispatch(self, tool: ToolDefinition, arguments: Arguments) -> Any:
        if tool.code is not None:
            if not tool.code.strip():
                raise DefinitionError(f"Tool '{tool.name}' has an empty code body")
            logger.debug(f"Using custom code for '{tool.name}'")
            implementation = load_entry_point(tool)
        elif tool.name in self.builtin_tools:
            implementation = self.builtin_tools[tool.name].invoke
        else:
            raise ToolNotImplementedError(f"Tool '{tool.name}' is not implemented and has no custom code")

        return implementation(tool.validate_arguments(arguments))
