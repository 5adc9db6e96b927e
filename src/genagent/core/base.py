"""Protocols for the collaborators the agent loop consumes.

Tool storage, knowledge retrieval, and execution logging belong to the surrounding application;
the agent loop only needs these narrow interfaces.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Protocol, Sequence, Union

from typing_extensions import runtime_checkable

from ..types_.core import ExecutionLogEntry, KnowledgeSnippet

if TYPE_CHECKING:
    from .tool import ToolDefinition

logger = logging.getLogger(__name__)


@runtime_checkable
class ToolStore(Protocol):
    """Lookup of stored tool definitions."""

    def list_by_ids(self, ids: Iterable[str]) -> list[ToolDefinition]:
        """Return the definitions for the given ids, in the requested order.

        Ids that no longer resolve are dropped.
        """
        ...

    def find_by_name(self, name: str) -> ToolDefinition | None:
        """Return the definition with exactly this name, if any."""
        ...


@runtime_checkable
class KnowledgeRetriever(Protocol):
    """Similarity search over an agent's knowledge base."""

    def search(
        self, agent_id: str, query: str, top_k: int
    ) -> Sequence[Union[KnowledgeSnippet, Mapping[str, Any]]]:
        """Return up to `top_k` snippets relevant to `query`, most relevant first.

        Each snippet exposes its text as ``content`` (attribute or mapping key).
        """
        ...


@runtime_checkable
class ExecutionLogSink(Protocol):
    """Write-only destination for finished-run summaries."""

    def save(self, entry: ExecutionLogEntry) -> None:
        """Persist a run summary."""
        ...
