"""Assembly of the instruction block that seeds a run's transcript.

The block is rendered from jinja2 templates in a fixed order:
framing (role, goal, task, expected output), context parameters, retrieved knowledge,
the user request, and finally the catalog of available tools.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from jinja2 import Environment, StrictUndefined, Template

from .base import KnowledgeRetriever
from .tool import ToolDefinition
from ..types_.core import GENERATION_PARAM_KEYS, AgentConfig

logger = logging.getLogger(__name__)

FRAMING_TEMPLATE = (
    "You are a {{ role }}.\n\n"
    "Your goal is: {{ goal }}\n\n"
    "Task Description:\n{{ task_description }}\n\n"
    "Expected Output Format:\n{{ expected_output }}"
)

CONTEXT_TEMPLATE = "\n\nContext:{% for key, value in context %}\n- {{ key }}: {{ value }}{% endfor %}"

KNOWLEDGE_TEMPLATE = (
    "\n\nRelevant Knowledge Base Documents:\n"
    "{% for document in documents %}\n[Document {{ loop.index }}] {{ document }}\n{% endfor %}"
)

REQUEST_TEMPLATE = "\n\n---\n\nUser Request: {{ user_input }}"

TOOLS_TEMPLATE = (
    "\n\n=== AVAILABLE TOOLS ===\n"
    "You have access to the following tools. "
    "When you need to use a tool, output a JSON object in this exact format:\n"
    '{"function": "tool_name", "arguments": {"param1": value1, "param2": value2}}\n\n'
    "{% for tool in tools %}"
    "Tool: {{ tool.name }}\n"
    "Description: {{ tool.description }}\n"
    "{% if tool.parameters %}Parameters:\n"
    "{% for param in tool.parameters %}"
    "  - {{ param.name }} ({{ param.type }}, {{ 'required' if param.required else 'optional' }}): "
    "{{ param.description or 'No description' }}\n"
    "{% endfor %}"
    "{% endif %}"
    "Returns: {{ tool.return_type }}\n\n"
    "{% endfor %}"
    "After receiving tool results, continue your reasoning and use the information to complete the task.\n"
    "===================\n"
)


def context_entries(params: Mapping[str, Any] | None) -> list[tuple[str, Any]]:
    """Run parameters that add prompt context, i.e. everything but the generation settings."""
    return [(k, v) for k, v in (params or {}).items() if k.lower() not in GENERATION_PARAM_KEYS]


def _snippet_content(snippet: Any) -> str | None:
    if isinstance(snippet, Mapping):
        content = snippet.get("content")
    else:
        content = getattr(snippet, "content", None)
    return str(content) if content else None


def retrieve_knowledge(retriever: KnowledgeRetriever | None, agent: AgentConfig, query: str) -> list[str]:
    """Fetch knowledge snippets for an agent with retrieval enabled.

    Retrieval is best-effort: any failure is logged and treated as "no context".
    """
    if not agent.rag_enabled or retriever is None:
        return []

    try:
        snippets = retriever.search(agent.id, query, agent.rag_top_k)
    except Exception as e:  # NOQA: BLE001
        logger.warning(f"Knowledge retrieval failed for agent {agent.id}: {e}")
        return []

    documents = [c for c in (_snippet_content(s) for s in snippets or []) if c]
    logger.debug(f"Retrieved {len(documents)} knowledge snippet(s) for agent {agent.id}")
    return documents


class PromptAssembler:
    """Render the first transcript turn of a run.

    Each section is its own jinja2 template so that a caller can swap any of them.

    Examples
    --------
    >>> agent = AgentConfig(role="data analyst", goal="summarize numbers")
    >>> text = PromptAssembler().assemble(agent, "Describe [1, 2, 3]")
    >>> text.startswith("You are a data analyst.")
    True
    >>> text.endswith("User Request: Describe [1, 2, 3]")
    True
    """

    def __init__(
        self,
        framing: str = FRAMING_TEMPLATE,
        context: str = CONTEXT_TEMPLATE,
        knowledge: str = KNOWLEDGE_TEMPLATE,
        request: str = REQUEST_TEMPLATE,
        tools: str = TOOLS_TEMPLATE,
    ):
        # ensure we raise an exception when a variable is present in the template but it is not passed
        env = Environment(undefined=StrictUndefined, keep_trailing_newline=True, autoescape=False)  # NOQA: S701
        self.framing: Template = env.from_string(framing)
        self.context: Template = env.from_string(context)
        self.knowledge: Template = env.from_string(knowledge)
        self.request: Template = env.from_string(request)
        self.tools: Template = env.from_string(tools)

    def render_framing(self, agent: AgentConfig) -> str:
        return self.framing.render(
            role=agent.role,
            goal=agent.goal,
            task_description=agent.task_description,
            expected_output=agent.expected_output,
        )

    def render_tools(self, tools: Sequence[ToolDefinition]) -> str:
        """Render the tools catalog; empty when there are no tools."""
        if not tools:
            return ""
        return self.tools.render(tools=tools)

    def assemble(
        self,
        agent: AgentConfig,
        user_input: str,
        tools: Sequence[ToolDefinition] = (),
        params: Mapping[str, Any] | None = None,
        knowledge: Sequence[str] = (),
    ) -> str:
        """Build the text of the first transcript turn.

        Parameters
        ----------
        agent : AgentConfig
            The agent being run.
        user_input : str
            The user's request.
        tools : Sequence[ToolDefinition]
            Tools the agent may call; the catalog is omitted when empty.
        params : Mapping[str, Any] | None
            Run parameters; all but the generation settings are listed as context.
        knowledge : Sequence[str]
            Retrieved knowledge snippets, listed in order.

        Returns
        -------
        str
            The assembled instruction block.
        """
        sections = [self.render_framing(agent)]

        if context := context_entries(params):
            sections.append(self.context.render(context=context))

        if knowledge:
            sections.append(self.knowledge.render(documents=list(knowledge)))

        sections.append(self.request.render(user_input=user_input))
        sections.append(self.render_tools(tools))

        return "".join(sections)
