"""Extraction of function calls from free-text model output.

The only recognized call syntax is a JSON object of the form
``{"function": "<tool_name>", "arguments": {...}}``, anywhere in the reply.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..types_.core import FunctionCall
from ..utilities.parse import iter_json_objects

logger = logging.getLogger(__name__)

_decoder = json.JSONDecoder()


def as_function_call(obj: Any) -> FunctionCall | None:
    """Interpret a decoded JSON value as a function call, if it has the call shape."""
    if not isinstance(obj, dict):
        return None
    name, arguments = obj.get("function"), obj.get("arguments")
    if not isinstance(name, str) or not name or not isinstance(arguments, dict):
        return None
    return FunctionCall(name=name, arguments=arguments)


def _calls_within(obj: Any) -> list[FunctionCall]:
    """Collect call-shaped objects from a decoded value in document order, without descending into calls."""
    calls: list[FunctionCall] = []
    pending = [obj]
    while pending:
        value = pending.pop()
        call = as_function_call(value)
        if call is not None:
            calls.append(call)
        elif isinstance(value, dict):
            pending.extend(reversed(list(value.values())))
        elif isinstance(value, list):
            pending.extend(reversed(value))
    return calls


def parse_function_calls(text: str) -> list[FunctionCall]:
    """Find every function call in a model reply, in order of appearance.

    Blocks that are not valid JSON are skipped and scanning continues inside and after them.
    Objects that are not calls themselves are searched for nested calls.
    An empty list means the reply is a final answer.

    Examples
    --------
    >>> reply = 'Let me check. {"function": "calculator", "arguments": {"expression": "2 + 2"}}'
    >>> parse_function_calls(reply)
    [FunctionCall(name='calculator', arguments={'expression': '2 + 2'})]
    >>> parse_function_calls("The answer is 4.")
    []
    """
    calls: list[FunctionCall] = []
    consumed_until = 0
    for start, end in iter_json_objects(text):
        if start < consumed_until:
            # inside a block that was already decoded
            continue

        try:
            obj, _ = _decoder.raw_decode(text, start)
        except (json.JSONDecodeError, RecursionError) as e:
            logger.debug(f"Skipping malformed JSON block at position {start}: {e.__class__.__name__}: {e}")
            continue

        calls.extend(_calls_within(obj))
        consumed_until = end

    if calls:
        logger.debug(f"Parsed {len(calls)} function call(s): {[c.name for c in calls]}")
    return calls
