"""Tool storage and per-run tool resolution.

InMemoryToolStore keeps tool definitions for the application and reconciles the built-in defaults at startup.
ToolRegistry is the read-only set of tools one run may call.
"""

from __future__ import annotations

import itertools
import logging
from typing import Iterable, Iterator, Sequence

from .base import ToolStore
from .tool import ToolDefinition

logger = logging.getLogger(__name__)


class InMemoryToolStore(ToolStore):
    """Dictionary-backed tool store.

    Examples
    --------
    >>> store = InMemoryToolStore()
    >>> store.reconcile()
    >>> store.find_by_name("calculator").is_default
    True
    """

    def __init__(self, tools: Iterable[ToolDefinition] | None = None):
        self._tools: dict[str, ToolDefinition] = {}
        self._saved_at: dict[str, int] = {}
        self._sequence = itertools.count()
        for t in tools or []:
            self.save(t)

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(list(self._tools.values()))

    def save(self, tool: ToolDefinition) -> ToolDefinition:
        """Insert or replace a definition, keyed by its id."""
        self._tools[tool.id] = tool
        self._saved_at[tool.id] = next(self._sequence)
        return tool

    def get(self, tool_id: str) -> ToolDefinition | None:
        return self._tools.get(tool_id)

    def delete(self, tool_id: str) -> None:
        self._tools.pop(tool_id, None)
        self._saved_at.pop(tool_id, None)

    def all(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def list_by_ids(self, ids: Iterable[str]) -> list[ToolDefinition]:
        tools = []
        for tool_id in ids:
            tool = self._tools.get(tool_id)
            if tool is None:
                logger.debug(f"Tool id {tool_id} no longer resolves; dropping it")
                continue
            tools.append(tool)
        return tools

    def find_by_name(self, name: str) -> ToolDefinition | None:
        return next((t for t in self._tools.values() if t.name == name), None)

    # ------------------------------------------------------------------
    # startup bookkeeping for the built-in defaults
    def seed_defaults(self, defaults: Sequence[ToolDefinition] | None = None) -> list[ToolDefinition]:
        """Add any default tool whose name is not in the store yet."""
        if defaults is None:
            from ..tools import default_tool_definitions

            defaults = default_tool_definitions()

        existing = {t.name for t in self._tools.values()}
        added = [
            self.save(d.model_copy(update={"is_default": True})) for d in defaults if d.name not in existing
        ]
        if added:
            logger.info(f"Seeded {len(added)} default tool(s): {[t.name for t in added]}")
        return added

    def prune_duplicate_defaults(self) -> list[ToolDefinition]:
        """Keep only the most recently saved default per name."""
        by_name: dict[str, list[ToolDefinition]] = {}
        for t in self._tools.values():
            if t.is_default:
                by_name.setdefault(t.name, []).append(t)

        removed = []
        for tools in by_name.values():
            newest_first = sorted(tools, key=lambda t: self._saved_at[t.id], reverse=True)
            for stale in newest_first[1:]:
                self.delete(stale.id)
                removed.append(stale)
        if removed:
            logger.info(f"Pruned {len(removed)} duplicate default tool(s)")
        return removed

    def remove_deprecated(self, names: Iterable[str]) -> list[ToolDefinition]:
        """Drop default tools that have been retired; user-authored tools are kept."""
        retired = set(names)
        removed = [t for t in self._tools.values() if t.is_default and t.name in retired]
        for t in removed:
            self.delete(t.id)
        return removed

    def reconcile(self, deprecated: Iterable[str] = ()) -> None:
        """Bring the defaults up to date. Safe to run on every startup."""
        self.remove_deprecated(deprecated)
        self.prune_duplicate_defaults()
        self.seed_defaults()


class ToolRegistry:
    """The tools one agent run is permitted to call."""

    def __init__(self, tools: Sequence[ToolDefinition] | None = None):
        self.tools = list(tools or [])

    @classmethod
    def resolve(cls, store: ToolStore, ids: Iterable[str]) -> ToolRegistry:
        """Resolve an agent's tool ids against a store, silently dropping stale ids."""
        ids = list(ids)
        tools = store.list_by_ids(ids) if ids else []
        if len(tools) < len(ids):
            logger.info(f"Resolved {len(tools)} of {len(ids)} tool id(s)")
        return cls(tools)

    def __len__(self) -> int:
        return len(self.tools)

    def __bool__(self) -> bool:
        return bool(self.tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self.tools)

    def find(self, name: str) -> ToolDefinition | None:
        """Look up a resolved tool by exact name."""
        return next((t for t in self.tools if t.name == name), None)
