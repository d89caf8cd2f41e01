"""Wire shapes for the image-generation service (``generateContent``).

Field names follow the REST camelCase (``promptFeedback``, ``inlineData``) but
snake_case is accepted too. Unknown fields are ignored and every model is
frozen, so interpreting a response can never mutate it.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

STOP_FINISH_REASON = "STOP"


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        validate_by_name=True,
        validate_by_alias=True,
        extra="ignore",
        frozen=True,
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class InlineData(_WireModel):
    mime_type: str = ""
    data: str = ""


class Part(_WireModel):
    text: Optional[str] = None
    inline_data: Optional[InlineData] = None
    thought: Optional[bool] = None

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(text=text)

    @classmethod
    def from_inline(cls, mime_type: str, data: str) -> "Part":
        return cls(inline_data=InlineData(mime_type=mime_type, data=data))


class Content(_WireModel):
    role: Optional[str] = None
    parts: Optional[tuple[Part, ...]] = None


class Candidate(_WireModel):
    content: Optional[Content] = None
    finish_reason: Optional[str] = None
    index: Optional[int] = None


class PromptFeedback(_WireModel):
    block_reason: Optional[str] = None
    block_reason_message: Optional[str] = None


class ServiceResponse(_WireModel):
    """Raw response returned by the generation service (may be partially populated)."""

    prompt_feedback: Optional[PromptFeedback] = None
    candidates: Optional[tuple[Candidate, ...]] = None
    text: Optional[str] = None

    @property
    def first_candidate(self) -> Optional[Candidate]:
        if not self.candidates:
            return None
        return self.candidates[0]

    @property
    def first_candidate_parts(self) -> tuple[Part, ...]:
        candidate = self.first_candidate
        if candidate is None or candidate.content is None or not candidate.content.parts:
            return ()
        return candidate.content.parts

    @property
    def response_text(self) -> Optional[str]:
        """Top-level ``text`` if present, else the first candidate's text parts joined.

        Mirrors the SDK ``response.text`` accessor, which the REST payload lacks.
        """
        if self.text is not None:
            return self.text
        chunks = [p.text for p in self.first_candidate_parts if p.text is not None and not p.thought]
        if not chunks:
            return None
        return "".join(chunks)
