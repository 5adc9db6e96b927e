"""Export and import of agents together with the custom tools they use.

A bundle is a JSON document:

    {
      "version": "1.0",
      "exportDate": "...",
      "agentCount": 1,
      "toolCount": 1,
      "agents": [{..., "originalId": "...", "exportedAt": "..."}],
      "tools": [{..., "originalId": "...", "exportedAt": "..."}]
    }

Only custom (non-default) tools referenced by the exported agents are included;
default tools are seeded in every store and are referenced by id only.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence, Union

import json_repair
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from .exceptions import BundleError
from .tool import ToolDefinition
from ..types_.core import AgentConfig
from ..utilities import now_utc, read_text
from ..utilities.parse import extract_json

logger = logging.getLogger(__name__)

BUNDLE_VERSION = "1.0"
REQUIRED_AGENT_FIELDS = ("name", "role", "goal")

# bookkeeping keys that never carry over into an imported definition
_EXPORT_ONLY_KEYS = {"id", "originalId", "exportedAt", "isDefault", "is_default"}

BundleSource = Union[Mapping[str, Any], str, Path]


class ImportedBundle(BaseModel):
    """Definitions read from a bundle, with fresh ids, ready to be saved."""

    agents: list[AgentConfig] = Field(default_factory=list)
    tools: list[ToolDefinition] = Field(default_factory=list)
    agent_ids: dict[str, str] = Field(default_factory=dict, description="Exported agent id -> new id.")
    tool_ids: dict[str, str] = Field(default_factory=dict, description="Exported tool id -> new id.")


def generate_unique_name(base_name: str, existing_names: Iterable[str]) -> str:
    """Return `base_name`, or `base_name (n)` with the smallest n that is not taken.

    Examples
    --------
    >>> generate_unique_name("Researcher", ["Researcher", "Researcher (1)"])
    'Researcher (2)'
    """
    taken = set(existing_names)
    name = base_name
    counter = 1
    while name in taken:
        name = f"{base_name} ({counter})"
        counter += 1
    return name


def export_bundle(agents: Sequence[AgentConfig], tools: Sequence[ToolDefinition]) -> dict[str, Any]:
    """Build a bundle of agents and the custom tools they reference."""
    exported_at = now_utc().isoformat()
    referenced = {tool_id for agent in agents for tool_id in agent.tools}
    custom_tools = [t for t in tools if t.id in referenced and not t.is_default]

    return {
        "version": BUNDLE_VERSION,
        "exportDate": exported_at,
        "agentCount": len(agents),
        "toolCount": len(custom_tools),
        "agents": [
            {**a.model_dump(mode="json", by_alias=True), "originalId": a.id, "exportedAt": exported_at}
            for a in agents
        ],
        "tools": [
            {
                **t.model_dump(mode="json", by_alias=True, exclude={"is_default"}),
                "originalId": t.id,
                "exportedAt": exported_at,
            }
            for t in custom_tools
        ],
    }


def dump_bundle(bundle: Mapping[str, Any], path: str | Path | None = None) -> str:
    """Serialize a bundle as indented JSON, optionally writing it to `path`."""
    text = json.dumps(bundle, indent=2)
    if path is not None:
        Path(path).expanduser().write_text(text, encoding="utf-8")
    return text


def load_bundle_data(source: BundleSource) -> dict[str, Any]:
    """Read a bundle from a mapping, JSON text, or a file.

    JSON text that does not parse strictly (e.g. wrapped in a markdown fence or prose)
    is extracted and repaired before giving up.
    """
    if isinstance(source, Mapping):
        data: Any = dict(source)
    else:
        text = read_text(source) if isinstance(source, Path) else source
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Bundle is not strict JSON; attempting repair")
            data = json_repair.loads(extract_json(text))

    if not isinstance(data, dict):
        raise BundleError("Invalid JSON structure")
    return data


def validate_bundle(data: Mapping[str, Any]) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Check the bundle envelope and return its raw agents and tools.

    Raises
    ------
    BundleError
        If the version or agents array is missing, or an agent lacks a name, role, or goal.
    """
    if not data.get("version"):
        raise BundleError("Missing version information")

    agents = data.get("agents")
    if not isinstance(agents, list):
        raise BundleError("Missing or invalid agents array")

    for agent in agents:
        if not isinstance(agent, dict) or not all(agent.get(field) for field in REQUIRED_AGENT_FIELDS):
            raise BundleError("Agent missing required fields (name, role, goal)")

    tools = data.get("tools") or []
    if not isinstance(tools, list) or not all(isinstance(t, dict) for t in tools):
        raise BundleError("Invalid tools array")

    return agents, tools


def _strip_export_keys(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in raw.items() if k not in _EXPORT_ONLY_KEYS}


def import_bundle(source: BundleSource, existing_agent_names: Iterable[str] = ()) -> ImportedBundle:
    """Read a bundle into new definitions.

    Every agent and tool gets a new id; agents' tool references are remapped to the new tool ids.
    References to tools outside the bundle are kept as-is.
    Agent names that clash with `existing_agent_names` (or with each other) get a numeric suffix.

    Parameters
    ----------
    source : Mapping | str | Path
        A decoded bundle, bundle JSON text, or the path of a bundle file.
    existing_agent_names : Iterable[str]
        Names already in use by the importing application.

    Returns
    -------
    ImportedBundle
        The new definitions and the id mappings.

    Raises
    ------
    BundleError
        If the bundle is malformed.
    """
    raw_agents, raw_tools = validate_bundle(load_bundle_data(source))
    imported = ImportedBundle()

    for raw in raw_tools:
        old_id = raw.get("originalId") or raw.get("id")
        try:
            tool = ToolDefinition.model_validate(_strip_export_keys(raw))
        except PydanticValidationError as e:
            raise BundleError(f"Invalid tool {raw.get('name')!r}: {e}") from e
        imported.tools.append(tool)
        if old_id:
            imported.tool_ids[old_id] = tool.id
        logger.debug(f"Tool mapping: {old_id} -> {tool.id}")

    taken_names = list(existing_agent_names)
    for raw in raw_agents:
        old_id = raw.get("originalId") or raw.get("id")
        fields = _strip_export_keys(raw)
        fields["tools"] = [imported.tool_ids.get(tool_id, tool_id) for tool_id in raw.get("tools") or []]
        fields["name"] = generate_unique_name(raw["name"], taken_names)
        taken_names.append(fields["name"])
        try:
            agent = AgentConfig.model_validate(fields)
        except PydanticValidationError as e:
            raise BundleError(f"Invalid agent {raw.get('name')!r}: {e}") from e
        imported.agents.append(agent)
        if old_id:
            imported.agent_ids[old_id] = agent.id

    logger.info(f"Imported {len(imported.agents)} agent(s) and {len(imported.tools)} tool(s)")
    return imported
