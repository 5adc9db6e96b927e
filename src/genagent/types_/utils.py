from __future__ import annotations as _annotations

import logging
import types
from typing import Annotated, Any, Union, get_args, get_origin

import typing_extensions

logger = logging.getLogger(__name__)


# same as `pydantic_ai_slim/pydantic_ai/_result.py:origin_is_union`
def origin_is_union(tp: type[Any] | None) -> bool:
    """Determine whether a given type parameter is a Union type."""
    return tp is Union or tp is types.UnionType


def get_union_args(tp: Any) -> tuple[Any, ...]:
    """Extract the arguments of a Union type if `tp` is a union, otherwise return the original type."""
    if isinstance(tp, typing_extensions.TypeAliasType):
        tp = tp.__value__

    origin = get_origin(tp)
    if origin_is_union(origin):
        return get_args(tp)
    else:
        return (tp,)


def unpack_annotated(tp: Any) -> tuple[Any, list[Any]]:
    """Strip `Annotated` from the type if present.

    Returns
    -------
        `(tp argument, [])` if not annotated, otherwise `(stripped type, annotations)`.
    """
    origin = get_origin(tp)
    if origin is Annotated or origin is typing_extensions.Annotated:
        inner_tp, *args = get_args(tp)
        return inner_tp, args
    else:
        return tp, []


def strip_optional(tp: Any) -> Any:
    """Drop `None` from a union, returning the remaining type (or union of types)."""
    tp, _ = unpack_annotated(tp)
    args = tuple(arg for arg in get_union_args(tp) if arg is not type(None))
    if not args:
        return type(None)
    if len(args) == 1:
        return args[0]
    return Union[args]  # type: ignore[return-value]
