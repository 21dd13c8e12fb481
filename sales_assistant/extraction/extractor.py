"""
Preference extraction wrapper around the external NLU capability.

Invokes the capability once per turn with the current profile and a short
window of recent messages, sanitizes whatever comes back, and fails closed:
an error or malformed output yields an empty extraction with confidence 0
so the turn can continue.
"""

from typing import Optional

from sales_assistant.config import ExtractionConfig, settings
from sales_assistant.extraction.sanitizer import sanitize_extracted
from sales_assistant.logging_context import get_conversation_logger
from sales_assistant.schemas.extraction_schema import ExtractionResult
from sales_assistant.schemas.profile_schema import CustomerProfile
from sales_assistant.tools.ports import PreferenceNLU

logger = get_conversation_logger(__name__)


class PreferenceExtractor:
    """Fail-closed extraction with sanitizing and confidence checks."""

    def __init__(self, nlu: PreferenceNLU, config: Optional[ExtractionConfig] = None) -> None:
        self._nlu = nlu
        self._config = config or settings.extraction

    async def extract(
        self,
        message: str,
        profile: CustomerProfile,
        history: Optional[list[str]] = None,
    ) -> ExtractionResult:
        window = self._config.history_window
        recent = (history or [])[-window:] if window else []

        try:
            raw = await self._nlu.extract(message, profile, recent)
            if not isinstance(raw, ExtractionResult):
                raw = ExtractionResult.model_validate(raw)
        except Exception:
            logger.warning("Preference extraction failed; continuing with empty extraction",
                           exc_info=True)
            return ExtractionResult.empty("extraction failed")

        clean = sanitize_extracted(raw.extracted)
        result = ExtractionResult(
            extracted=clean,
            confidence=raw.confidence if clean else 0.0,
            reasoning=raw.reasoning,
            fields_extracted=list(clean),
        )

        if clean and result.confidence < self._config.min_confidence:
            logger.warning(
                "Extraction confidence %.2f below threshold %.2f",
                result.confidence, self._config.min_confidence,
            )
        logger.debug("Extracted %s (confidence %.2f)", result.fields_extracted, result.confidence)
        return result
