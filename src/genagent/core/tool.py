"""Tool definitions and helpers for tool use.

A ToolDefinition is the declarative description of a tool: the name the model uses to call it,
the description and parameter specs that tell the model when and how to call it,
and optionally the Python source of a user-authored implementation.

Built-in tools are plain Python functions wrapped with ``@tool``;
their ToolDefinition is derived from the function signature and docstring.

ref: https://github.com/openai/openai-agents-python/blob/8d906f88f02d30b3cf6068e5de88a5f1e4bafd82/src/agents/function_schema.py
"""

from __future__ import annotations

import contextlib
import inspect
import json
import logging
import re
from typing import Any, Callable, Literal, get_origin, get_type_hints
from uuid import uuid4

from pydantic import BaseModel, Field

from .exceptions import ValidationError
from ..types_.base import Arguments, ParamType
from ..types_.core import CamelModel
from ..types_.utils import get_union_args, strip_optional

logger = logging.getLogger(__name__)


class ToolParameter(CamelModel):
    name: str = Field(min_length=1)
    type: ParamType = "string"
    description: str = ""
    required: bool = False


class ToolDefinition(CamelModel):
    """A named capability advertised to the model.

    ``code`` holds Python source defining an ``execute(args)`` entry point.
    ``None`` means the tool has no code of its own (built-ins and descriptive-only tools);
    a blank string is an explicitly empty body.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(min_length=1)
    description: str = ""
    parameters: list[ToolParameter] = Field(default_factory=list)
    return_type: str = "object"
    code: str | None = Field(default=None, alias="codeImplementation")
    is_default: bool = False

    @property
    def required_parameters(self) -> list[str]:
        return [p.name for p in self.parameters if p.required]

    def validate_arguments(self, arguments: Arguments) -> Arguments:
        """Check that every required parameter is present.

        Only presence is checked; values are handed to the implementation as given.

        Raises
        ------
        ValidationError
            If a required parameter is missing.
        """
        missing = [name for name in self.required_parameters if name not in arguments]
        if missing:
            raise ValidationError(f"Missing required argument(s) for '{self.name}': {', '.join(missing)}")
        return arguments


# ------------------------------------------------------------------
# docstring parsing
DocstringStyle = Literal["google", "numpy", "sphinx"]


def _detect_docstring_style(doc: str) -> DocstringStyle:
    """Detect the style of a docstring.

    Ref: https://github.com/openai/openai-agents-python/blob/8d906f88f02d30b3cf6068e5de88a5f1e4bafd82/src/agents/function_schema.py#L87-L129
    """
    scores: dict[DocstringStyle, int] = {"sphinx": 0, "numpy": 0, "google": 0}

    sphinx_patterns = [r"^:param\s", r"^:type\s", r"^:return:", r"^:rtype:"]
    for pattern in sphinx_patterns:
        if re.search(pattern, doc, re.MULTILINE):
            scores["sphinx"] += 1

    numpy_patterns = [
        r"^Parameters\s*\n\s*-{3,}",
        r"^Returns\s*\n\s*-{3,}",
        r"^Yields\s*\n\s*-{3,}",
    ]
    for pattern in numpy_patterns:
        if re.search(pattern, doc, re.MULTILINE):
            scores["numpy"] += 1

    google_patterns = [r"^(Args|Arguments):", r"^(Returns):", r"^(Raises):"]
    for pattern in google_patterns:
        if re.search(pattern, doc, re.MULTILINE):
            scores["google"] += 1

    max_score = max(scores.values())
    if max_score == 0:
        return "google"

    # Priority order: sphinx > numpy > google in case of tie
    styles: list[DocstringStyle] = ["sphinx", "numpy", "google"]
    for style in styles:
        if scores[style] == max_score:
            return style

    return "google"


@contextlib.contextmanager
def _suppress_griffe_logging():
    """Suppresses warnings about missing annotations for params."""
    logger = logging.getLogger("griffe")
    previous_level = logger.getEffectiveLevel()
    logger.setLevel(logging.ERROR)
    try:
        yield
    finally:
        logger.setLevel(previous_level)


def _parse_docstring(fn: Callable) -> list | None:
    from griffe import Docstring

    doc = inspect.getdoc(fn)
    if not doc:
        return None

    with _suppress_griffe_logging():
        docstring = Docstring(doc, lineno=1, parser=_detect_docstring_style(doc))
        return docstring.parse()


def extract_function_description(fn: Callable) -> str | None:
    """Extract the description from a function's docstring."""
    from griffe import DocstringSectionKind

    parsed = _parse_docstring(fn)
    if parsed is None:
        return None

    return next((section.value for section in parsed if section.kind == DocstringSectionKind.text), None)


def extract_param_descriptions(fn: Callable) -> dict[str, str]:
    """Extract the parameter descriptions from a function's docstring."""
    from griffe import DocstringSectionKind

    parsed = _parse_docstring(fn)
    if parsed is None:
        return {}

    return {
        param.name: param.description
        for section in parsed
        if section.kind == DocstringSectionKind.parameters
        for param in section.value
    }


# ------------------------------------------------------------------
# python functions as tools
def param_type_of(annotation: Any) -> ParamType:
    """Map a Python annotation onto the primitive type tag advertised to the model."""
    if annotation is inspect.Parameter.empty or annotation is Any:
        return "string"

    tags: set[ParamType] = set()
    for arg in get_union_args(strip_optional(annotation)):
        origin = get_origin(arg) or arg
        if origin is bool:
            tags.add("boolean")
        elif origin in (int, float):
            tags.add("number")
        elif origin in (list, tuple, set, frozenset):
            tags.add("array")
        elif origin is dict or (isinstance(origin, type) and issubclass(origin, BaseModel)):
            tags.add("object")
        else:
            tags.add("string")

    # mixed unions have no single primitive tag; fall back to string
    return tags.pop() if len(tags) == 1 else "string"


def function_definition(fn: Callable, name: str | None = None, returns: ParamType | None = None) -> ToolDefinition:
    """Given a python function, generate its ToolDefinition.

    Parameters without a default are required.
    Requires type hints and docstrings for an accurate definition.
    """
    if inspect.getdoc(fn) is None:
        logger.warning(f"Function {fn.__name__} requires docstrings for viable definition.")
        description = ""
    else:
        description = extract_function_description(fn) or ""

    # Handle bound methods by getting the original function
    if inspect.ismethod(fn):
        fn = fn.__func__

    sig = inspect.signature(fn)
    type_hints = get_type_hints(fn)
    param_descs = extract_param_descriptions(fn)

    parameters = []
    for param_name, param in sig.parameters.items():
        if param_name in ("self", "cls"):
            continue
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            logger.debug(f"Skipping variadic parameter '{param_name}' of {fn.__name__}")
            continue

        parameters.append(
            ToolParameter(
                name=param_name,
                type=param_type_of(type_hints.get(param_name, param.annotation)),
                description=param_descs.get(param_name, ""),
                required=param.default is inspect.Parameter.empty,
            )
        )

    return ToolDefinition(
        name=name or fn.__name__,
        description=description,
        parameters=parameters,
        return_type=returns or param_type_of(type_hints.get("return", Any)),
        is_default=True,
    )


class Tool:
    """Wrap a python function as a tool with a derived ToolDefinition."""

    definition: ToolDefinition

    def __init__(self, func: Callable[..., Any], name: str | None = None, returns: ParamType | None = None) -> None:
        self._func = func
        self.definition = function_definition(func, name=name, returns=returns)

        self.__name__ = self.definition.name
        self.__doc__ = func.__doc__

    @property
    def name(self) -> str:
        return self.definition.name

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._func(*args, **kwargs)

    def invoke(self, arguments: Arguments) -> Any:
        """Call the function with the matching entries of an argument bag; unknown keys are dropped."""
        accepted = inspect.signature(self._func).parameters
        kwargs = {k: v for k, v in arguments.items() if k in accepted}
        if ignored := sorted(set(arguments) - set(kwargs)):
            logger.debug(f"Ignoring unexpected arguments for {self.name}: {ignored}")
        return self._func(**kwargs)


def tool(
    func: Callable[..., Any] | None = None,
    *,
    name: str | None = None,
    returns: ParamType | None = None,
) -> Tool | Callable[[Callable[..., Any]], Tool]:
    """Decorate a function into a Tool.

    Can be used either as a bare decorator (@tool) or with parameters (@tool(returns="number")).

    Examples
    --------
    >>> @tool
    ... def add(x: int, y: int) -> int:
    ...     '''Add two numbers.
    ...
    ...     Args:
    ...         x: first addend
    ...         y: second addend
    ...     '''
    ...     return x + y
    >>> add.definition.parameters[0].type
    'number'
    >>> add.invoke({"x": 1, "y": 2})
    3
    """

    def decorator(f: Callable[..., Any]) -> Tool:
        return Tool(f, name=name, returns=returns)

    if func is not None:
        return decorator(func)
    return decorator


# ------------------------------------------------------------------
# results
def failure_result(tool_name: str, error: BaseException) -> dict[str, Any]:
    """Normalize an exception into the structured failure returned to the model."""
    return {
        "error": True,
        "message": str(error) or error.__class__.__name__,
        "tool_name": tool_name,
        "error_type": error.__class__.__name__,
    }


def _stringify_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {k if isinstance(k, str) else str(k): _stringify_keys(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_stringify_keys(v) for v in value]
    return value


def normalize_result(result: Any) -> dict[str, Any]:
    """Coerce a tool's return value into a JSON-safe mapping.

    Non-string keys are stringified and values json cannot encode are rendered with ``str``,
    so the result can be logged and sent back to the model as-is.

    Raises
    ------
    TypeError, ValueError, RecursionError
        If the value cannot be serialized at all (e.g. it contains itself).

    Examples
    --------
    >>> normalize_result({1: "one", "when": (2024, 1)})
    {'1': 'one', 'when': [2024, 1]}
    >>> normalize_result(4)
    {'success': True, 'result': 4}
    """
    if isinstance(result, BaseModel):
        result = result.model_dump(mode="json")
    if not isinstance(result, dict):
        result = {"success": True, "result": result}
    return json.loads(json.dumps(_stringify_keys(result), default=str))


def respond_as_tool(tool_name: str, result: dict[str, Any]) -> str:
    """Render a tool result as the user-origin turn folded back into the transcript."""
    try:
        payload = json.dumps(result, indent=2)
    except (TypeError, ValueError) as e:
        logger.debug(f"Could not serialize result as json string: {e}")
        payload = json.dumps(result, indent=2, default=str)

    return (
        f'Tool "{tool_name}" execution result:\n{payload}\n\nPlease continue with the task using this information.'
    )
