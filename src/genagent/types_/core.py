from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Literal, Mapping
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .base import JSON, Arguments
from ..utilities import format_json, now_utc

logger = logging.getLogger(__name__)

Role = Literal["user", "model"]

# custom parameter keys that tune generation rather than add prompt context
GENERATION_PARAM_KEYS = {
    "temperature": "temperature",
    "maxtokens": "max_output_tokens",
    "topp": "top_p",
    "topk": "top_k",
}


class CamelModel(BaseModel):
    """Base for models exchanged in camelCase but populated by either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CustomParameter(CamelModel):
    """A run-time parameter an agent accepts, with its default value."""

    key: str = Field(min_length=1)
    value: JSON = None
    type: str = "text"


class AgentConfig(CamelModel):
    """A configured persona, its instructions, and the tools it may call.

    Agents are owned by the surrounding application; the agent loop only reads them.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = ""
    role: str = Field(min_length=1)
    goal: str = Field(min_length=1)
    task_description: str = ""
    expected_output: str = ""
    model: str = "gemini-2.5-flash-lite"
    custom_parameters: list[CustomParameter] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list, description="Ordered ids of the tools the agent may use.")
    rag_enabled: bool = False
    rag_top_k: int = Field(default=3, ge=1)

    def parameter_values(self, overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Merge run-time parameter values over the agent's defaults."""
        values = {p.key: p.value for p in self.custom_parameters if p.value not in (None, "")}
        values.update(overrides or {})
        return values


class GenerationParams(BaseModel):
    """Sampling settings sent with every model call."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    temperature: float = 0.7
    top_p: float = 0.95
    top_k: int = 40
    max_output_tokens: int = 8000

    @classmethod
    def from_custom_params(cls, params: Mapping[str, Any] | None) -> GenerationParams:
        """Pick generation settings out of free-form run parameters.

        Keys are matched case-insensitively (``temperature``, ``maxTokens``, ``topP``, ``topK``);
        numeric strings are parsed and values that are not numbers are ignored.
        """
        found: dict[str, float] = {}
        for key, value in (params or {}).items():
            field = GENERATION_PARAM_KEYS.get(key.lower())
            if field is None:
                continue
            try:
                number = float(value)
                found[field] = int(number) if field in ("top_k", "max_output_tokens") else number
            except (TypeError, ValueError, OverflowError):
                logger.warning(f"Ignoring non-numeric generation parameter {key}={value!r}")
        return cls(**found)

    def to_wire(self) -> dict[str, float | int]:
        return self.model_dump(by_alias=True)


class FunctionCall(BaseModel):
    """A tool invocation requested by the model. Never persisted."""

    name: str = Field(min_length=1)
    arguments: Arguments = Field(default_factory=dict)


class ToolExecutionRecord(BaseModel):
    iteration: int = Field(ge=1)
    tool: str
    arguments: Arguments
    result: dict[str, Any]


class Turn(BaseModel):
    role: Role = Field(description="Who produced the turn.")
    content: str = Field(description="The text of the turn.", min_length=1)

    def __repr__(self):
        return format_json(self.model_dump())


class Transcript(BaseModel):
    """Ordered, append-only sequence of turns for a single run."""

    turns: list[Turn] = Field(default_factory=list)

    def __repr__(self):
        return format_json(self.model_dump())

    def __len__(self) -> int:
        return len(self.turns)

    def append_user(self, content: str) -> Turn:
        turn = Turn(role="user", content=content)
        self.turns.append(turn)
        return turn

    def append_model(self, content: str) -> Turn:
        turn = Turn(role="model", content=content)
        self.turns.append(turn)
        return turn

    @property
    def last_model_text(self) -> str | None:
        """Content of the most recent model turn, if any."""
        return next((t.content for t in reversed(self.turns) if t.role == "model"), None)

    def to_contents(self) -> list[dict[str, Any]]:
        """Render as the ``contents`` array of a generateContent request."""
        return [{"role": t.role, "parts": [{"text": t.content}]} for t in self.turns]


class KnowledgeSnippet(BaseModel, extra="ignore"):
    content: str


class ExecutionLogEntry(BaseModel):
    """Summary of one finished run, handed to an execution log sink."""

    agent_id: str
    agent_name: str
    run_at: datetime = Field(default_factory=now_utc)
    input: str
    output: str
    params: dict[str, Any] = Field(default_factory=dict)
    model: str
    status: Literal["success", "error"]
