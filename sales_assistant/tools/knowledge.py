"""
Knowledge-answering adapters.

``CannedKnowledgeAnswerer`` answers common dealership questions from a
topic table. ``PromptedKnowledgeAnswerer`` hands the question to any async
chat-completion callable with the vehicles under discussion as context.
"""

import logging
from typing import Optional

from sales_assistant.prompts.prompt_templates import build_knowledge_prompt
from sales_assistant.prompts.system_prompts import KNOWLEDGE_SYSTEM_PROMPT
from sales_assistant.schemas.profile_schema import ShownVehicle
from sales_assistant.tools.ports import CompletionFn
from sales_assistant.utils import capitalize_words, format_price

logger = logging.getLogger(__name__)

TOPIC_ANSWERS: dict[str, str] = {
    "warranty": (
        "Every car we sell goes through a full inspection and comes with a "
        "3-month powertrain warranty."
    ),
    "inspection": "All vehicles are inspected by our workshop before they go on sale.",
    "financ": (
        "We work with several banks, so financing can cover up to 100% of the price "
        "depending on your credit approval."
    ),
    "trade": "Yes, we accept trade-ins. A consultant evaluates your car in person.",
    "test drive": "Test drives are free, just let me know when you'd like to come by.",
    "hours": "We're open Monday to Saturday, 9am to 6pm.",
    "open": "We're open Monday to Saturday, 9am to 6pm.",
    "where": "You can visit us at the showroom, a consultant will send you the address.",
    "document": "Every car has its paperwork in order and a clean title report.",
    "uber": (
        "Ride-hail apps usually accept cars up to 10 years old for the standard tier "
        "and up to 6 years old for the premium tiers, with 4 doors and air conditioning."
    ),
    "ride": (
        "Ride-hail apps usually accept cars up to 10 years old for the standard tier "
        "and up to 6 years old for the premium tiers, with 4 doors and air conditioning."
    ),
}

FALLBACK_ANSWER = (
    "Good question! A consultant can give you the exact details. "
    "Meanwhile, tell me more about the car you're looking for?"
)


def _vehicle_line(vehicle: ShownVehicle) -> str:
    return f"{capitalize_words(vehicle.display_name)} ({format_price(vehicle.price)})"


class CannedKnowledgeAnswerer:
    """Implements the knowledge port from a fixed topic table."""

    def __init__(self, answers: Optional[dict[str, str]] = None) -> None:
        self._answers = answers if answers is not None else TOPIC_ANSWERS

    async def answer(
        self, question: str, vehicles: list[ShownVehicle], conversation_summary: str
    ) -> str:
        lower = question.lower()
        for topic, text in self._answers.items():
            if topic in lower:
                logger.debug("Knowledge topic matched: %s", topic)
                if vehicles and topic in ("warranty", "inspection", "document"):
                    return f"{text} That includes the {_vehicle_line(vehicles[0])}."
                return text
        return FALLBACK_ANSWER


class PromptedKnowledgeAnswerer:
    """Implements the knowledge port on top of any async chat-completion callable."""

    def __init__(self, complete: CompletionFn, system_prompt: str = KNOWLEDGE_SYSTEM_PROMPT) -> None:
        self._complete = complete
        self._system_prompt = system_prompt

    async def answer(
        self, question: str, vehicles: list[ShownVehicle], conversation_summary: str
    ) -> str:
        system = build_knowledge_prompt(self._system_prompt, vehicles, conversation_summary)
        reply = await self._complete(system, question)
        return reply.strip() or FALLBACK_ANSWER
