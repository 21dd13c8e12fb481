"""NLU adapter that asks a language model for a JSON extraction."""

import json
import re
from typing import Any

from sales_assistant.prompts.prompt_templates import (
    build_extraction_prompt,
    build_extraction_user_message,
)
from sales_assistant.prompts.system_prompts import EXTRACTION_SYSTEM_PROMPT
from sales_assistant.schemas.extraction_schema import ExtractionResult
from sales_assistant.schemas.profile_schema import CustomerProfile
from sales_assistant.tools.ports import CompletionFn

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_extraction_json(text: str) -> ExtractionResult:
    """Parse a model reply into an ExtractionResult.

    Markdown code fences are tolerated, a confidence given as a percentage
    is scaled down, and a missing field list is rebuilt from the keys.

    Raises:
        ValueError: If the reply is not a JSON object with an "extracted" object.
    """
    cleaned = _CODE_FENCE_RE.sub("", text.strip()).strip()
    data: Any = json.loads(cleaned)
    if not isinstance(data, dict) or not isinstance(data.get("extracted"), dict):
        raise ValueError("Extraction reply has no 'extracted' object")

    extracted = {k: v for k, v in data["extracted"].items() if v is not None}

    confidence = data.get("confidence", 0.0)
    if not isinstance(confidence, (int, float)) or isinstance(confidence, bool):
        confidence = 0.0
    if confidence > 1:
        confidence = confidence / 100
    confidence = max(0.0, min(1.0, float(confidence)))

    fields = data.get("fieldsExtracted") or data.get("fields_extracted")
    if not isinstance(fields, list):
        fields = list(extracted)

    return ExtractionResult(
        extracted=extracted,
        confidence=confidence,
        reasoning=str(data.get("reasoning", "")),
        fields_extracted=[str(f) for f in fields],
    )


class PromptedExtractor:
    """Implements the NLU port on top of any async chat-completion callable."""

    def __init__(self, complete: CompletionFn, system_prompt: str = EXTRACTION_SYSTEM_PROMPT) -> None:
        self._complete = complete
        self._system_prompt = system_prompt

    async def extract(
        self, message: str, profile: CustomerProfile, history: list[str]
    ) -> ExtractionResult:
        system = build_extraction_prompt(self._system_prompt, profile, history)
        reply = await self._complete(system, build_extraction_user_message(message))
        return parse_extraction_json(reply)
