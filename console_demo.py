"""
Offline console demo: runs a full sales conversation without any API keys.

Drives the real orchestrator with the in-memory inventory, the keyword
extractor and the canned knowledge answerer. No LLM, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario exact_hit
    python console_demo.py --scenario seven_seats
    python console_demo.py --scenario ride_hail
"""

import argparse
import asyncio
import logging

from sales_assistant.config import settings
from sales_assistant.orchestrator import SalesOrchestrator
from sales_assistant.schemas.conversation_schema import ConversationResponse
from sales_assistant.session import ConversationSession
from sales_assistant.tools.inventory import InMemoryInventory
from sales_assistant.tools.keyword_extractor import KeywordExtractor
from sales_assistant.tools.knowledge import CannedKnowledgeAnswerer

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

PROFILE_FIELDS_SHOWN = (
    "customer_name", "budget", "usage", "main_use", "body_type", "model", "min_year",
    "min_seats", "has_trade_in", "trade_in_model", "trade_in_year", "trade_in_km",
    "wants_financing", "financing_down_payment",
)


class ConsoleSession:
    """Plays a sales conversation in the terminal."""

    def __init__(self) -> None:
        orchestrator = SalesOrchestrator(KeywordExtractor(), InMemoryInventory(), CannedKnowledgeAnswerer())
        self.session = ConversationSession(orchestrator, conversation_id="CONSOLE")
        self.phase_trace: list[str] = [self.session.phase.value]

    def agent_say(self, text: str) -> None:
        name = settings.business.assistant_name
        print(f"{GREEN}{BOLD}[{name}]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "exact_hit": [
            "Onix 2019",
            "I want to finance it",
            "5k down",
        ],
        "year_miss": [
            "Onix 2025",
            "yes",
            "I like it",
        ],
        "trade_in": [
            "Hi",
            "I'm Ana",
            "I have a Civic 2010, looking for a truck",
            "around 25k",
            "for work",
        ],
        "seven_seats": [
            "Hello",
            "I'm Paula",
            "We need 7 seats, budget 15k",
            "yes",
        ],
        "ride_hail": [
            "Hi",
            "I'm Marcos",
            "Which cars qualify for Uber Black?",
            "Is the Civic ok for Uber Black?",
        ],
        "financing": [
            "Hi, I'm Carlos",
            "SUV for the family and commuting, budget 30k",
            "I like the Creta",
            "I want to finance it",
            "I have a Gol 2015 with 90,000 km to trade in",
            "no down payment",
        ],
    }

    MAX_INPUT_LENGTH = 500

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  SALES ASSISTANT - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  Dealership: {settings.business.name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        for step in steps:
            print(f"\n{BLUE}[Customer] {RESET}{step}")
            self._process_input(step)

        self._print_summary(f"Scenario '{scenario}' complete.")

    def run(self) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  SALES ASSISTANT - Console Demo{RESET}")
        print(f"{BOLD}  Dealership: {settings.business.name}{RESET}")
        print(f"{BOLD}  Type 'quit' to exit{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        while True:
            user_input = input(f"\n{BLUE}[Customer] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                break

            if len(user_input) > self.MAX_INPUT_LENGTH:
                self.agent_say("That was quite long. Could you keep it brief for me?")
                continue

            self._process_input(user_input)

        self._print_summary("Conversation complete.")

    def _process_input(self, text: str) -> None:
        response = asyncio.run(self.session.send(text))
        self.agent_say(response.response)
        self._log_turn(response)

    def _log_turn(self, response: ConversationResponse) -> None:
        self.phase_trace.append(response.next_phase.value)
        handled_by = response.metadata.handled_by or "-"
        self.system_log(
            f"Phase: {response.next_phase.value} | handled by: {handled_by} | "
            f"{response.metadata.processing_time_ms:.1f} ms"
        )
        profile = self.session.profile
        known = {f: getattr(profile, f) for f in PROFILE_FIELDS_SHOWN if getattr(profile, f) is not None}
        self.system_log(f"Profile: {known}")
        if profile.pending is not None:
            self.system_log(f"{YELLOW}Pending: {profile.pending.kind}{RESET}")

    def _print_summary(self, title: str) -> None:
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {title}{RESET}")
        print(f"{DIM}  Phase trace: {' -> '.join(self.phase_trace)}{RESET}")
        print(f"{DIM}  Messages: {self.session.context.metadata.message_count}, "
              f"questions asked: {self.session.context.metadata.questions_asked}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    parser.add_argument("--verbose", action="store_true", help="Show debug logs")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger("sales_assistant").setLevel(logging.DEBUG)

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
