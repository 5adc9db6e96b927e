"""Response shapes of the generateContent endpoint.

Only the fields the gateway reads are modelled; everything else is ignored.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Part(_Wire):
    text: str | None = None


class Content(_Wire):
    role: str | None = None
    parts: list[Part] = Field(default_factory=list)


class Candidate(_Wire):
    content: Content | None = None
    finish_reason: str | None = None


class PromptFeedback(_Wire):
    block_reason: str | None = None


class GenerateContentResponse(_Wire):
    candidates: list[Candidate] = Field(default_factory=list)
    prompt_feedback: PromptFeedback | None = None

    @property
    def block_reason(self) -> str | None:
        return self.prompt_feedback.block_reason if self.prompt_feedback else None


class ErrorDetail(_Wire):
    code: int | None = None
    message: str | None = None
    status: str | None = None


class ErrorResponse(_Wire):
    error: ErrorDetail | None = None
