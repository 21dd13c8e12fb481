"""Result contract of the natural-language extraction capability."""

from typing import Any

from pydantic import BaseModel, Field


class ExtractionResult(BaseModel):
    """Candidate partial profile produced from one customer message."""

    extracted: dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = ""
    fields_extracted: list[str] = Field(default_factory=list)

    @classmethod
    def empty(cls, reasoning: str = "") -> "ExtractionResult":
        return cls(extracted={}, confidence=0.0, reasoning=reasoning, fields_extracted=[])

    @property
    def is_empty(self) -> bool:
        return not self.extracted
