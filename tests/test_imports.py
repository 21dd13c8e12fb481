"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""


class TestSchemaImports:
    def test_import_conversation_schema(self):
        from sales_assistant.schemas.conversation_schema import (
            ConversationContext, ConversationResponse, GraphState, Role,
        )
        context = ConversationContext(conversation_id="X")
        assert context.phase == GraphState.START
        assert Role.USER == "user"
        assert ConversationResponse is not None

    def test_import_profile_schema(self):
        from sales_assistant.schemas.profile_schema import (
            CONTROL_FIELDS, CustomerProfile, AwaitingTradeIn,
        )
        profile = CustomerProfile()
        assert profile.pending is None
        assert "pending" in CONTROL_FIELDS
        assert AwaitingTradeIn().kind == "awaiting_trade_in"

    def test_import_vehicle_schema(self):
        from sales_assistant.schemas.vehicle_schema import SearchFilters, SearchQuery, Vehicle, VehicleMatch
        assert SearchFilters().limit >= 1
        assert SearchQuery is not None and Vehicle is not None and VehicleMatch is not None


class TestConversationImports:
    def test_import_package(self):
        from sales_assistant.conversation import (
            ConversationStateMachine, PhaseTrigger, ReadinessAssessor, merge_profile,
        )
        sm = ConversationStateMachine()
        assert sm.current_state.value == "START"
        assert PhaseTrigger.GREETED == "greeted"
        assert ReadinessAssessor is not None and callable(merge_profile)

    def test_import_cascade(self):
        from sales_assistant.conversation.cascade import INTERCEPTION_STEPS, run_cascade
        assert len(INTERCEPTION_STEPS) == 13
        assert callable(run_cascade)

    def test_import_intent_detector(self):
        from sales_assistant.conversation.intent_detector import (
            PostRecommendationIntent, is_question, detect_post_recommendation_intent,
        )
        assert PostRecommendationIntent.NONE == "none"
        assert callable(is_question) and callable(detect_post_recommendation_intent)


class TestExtractionImports:
    def test_import_package(self):
        from sales_assistant.extraction import (
            PreferenceExtractor, PromptedExtractor, parse_extraction_json, sanitize_extracted,
        )
        assert sanitize_extracted({}) == {}
        assert PreferenceExtractor is not None and PromptedExtractor is not None
        assert callable(parse_extraction_json)


class TestHandlerImports:
    def test_import_package(self):
        from sales_assistant.handlers import Turn, TurnServices, handle_greeting, recommend_or_ask
        assert Turn is not None and TurnServices is not None
        assert callable(handle_greeting) and callable(recommend_or_ask)


class TestToolImports:
    def test_import_inventory(self):
        from sales_assistant.tools.inventory import SAMPLE_VEHICLES, InMemoryInventory
        assert len(SAMPLE_VEHICLES) == 12
        assert InMemoryInventory() is not None

    def test_import_parsers(self):
        from sales_assistant.tools.exact_search_parser import parse_exact_query
        from sales_assistant.tools.trade_in_parser import extract_trade_in_info
        from sales_assistant.tools.keyword_extractor import KeywordExtractor
        assert callable(parse_exact_query) and callable(extract_trade_in_info)
        assert KeywordExtractor() is not None

    def test_import_ports(self):
        from sales_assistant.tools.ports import KnowledgePort, PreferenceNLU, VehicleSearchPort
        assert KnowledgePort is not None and PreferenceNLU is not None and VehicleSearchPort is not None


class TestPromptImports:
    def test_import_system_prompts(self):
        from sales_assistant.prompts.system_prompts import EXTRACTION_SYSTEM_PROMPT, KNOWLEDGE_SYSTEM_PROMPT
        assert "json" in EXTRACTION_SYSTEM_PROMPT.lower()
        assert KNOWLEDGE_SYSTEM_PROMPT

    def test_import_prompt_templates(self):
        from sales_assistant.prompts.prompt_templates import (
            build_extraction_prompt, build_extraction_user_message, build_knowledge_prompt,
        )
        assert callable(build_extraction_prompt)
        assert callable(build_extraction_user_message) and callable(build_knowledge_prompt)


class TestConfigImport:
    def test_import_config(self):
        from sales_assistant.config import settings
        assert settings.business.name is not None
        assert settings.model.llm_model is not None
        assert settings.readiness.force_recommend_messages >= settings.readiness.partial_info_messages


class TestConsoleDemo:
    def test_console_session_imports(self):
        from console_demo import ConsoleSession
        session = ConsoleSession()
        assert session.session.phase.value == "START"
        assert session.phase_trace == ["START"]
        assert "seven_seats" in session.SCENARIOS
