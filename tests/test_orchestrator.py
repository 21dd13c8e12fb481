"""End-to-end turns through SalesOrchestrator.process_turn."""

import pytest

from sales_assistant.orchestrator import ABSORBING_MESSAGES, APOLOGY_MESSAGE
from sales_assistant.schemas.conversation_schema import GraphState
from sales_assistant.schemas.profile_schema import AwaitingSuggestionAnswer
from tests.conftest import FailingNLU, FailingSearch, ScriptedNLU, make_context, make_orchestrator


class TestOrchestratorRouting:
    @pytest.mark.asyncio
    async def test_first_message_greets(self, orchestrator):
        response = await orchestrator.process_turn("Hi", make_context(GraphState.START))
        assert response.next_phase == GraphState.GREETING
        assert response.metadata.handled_by == "greeting"
        assert "What's your name?" in response.response

    @pytest.mark.asyncio
    async def test_first_message_with_preferences_skips_greeting(self, orchestrator):
        response = await orchestrator.process_turn("Onix 2019", make_context(GraphState.START))
        assert response.metadata.handled_by == "exact_search"
        assert response.next_phase == GraphState.RECOMMENDATION
        assert response.response.startswith("Yes! We have the Onix 2019")
        assert response.can_recommend
        assert response.metadata.extra["search_type"] == "specific"
        assert [r.vehicle_id for r in response.recommendations] == ["onix-2019"]

    @pytest.mark.asyncio
    async def test_greeting_skipped_after_discovery(self, orchestrator):
        response = await orchestrator.process_turn("Hi", make_context(GraphState.DISCOVERY))
        assert response.metadata.handled_by == "readiness"
        assert response.next_phase == GraphState.CLARIFICATION

    @pytest.mark.asyncio
    async def test_readiness_recommends(self, orchestrator):
        context = make_context(GraphState.DISCOVERY, message_count=2)
        response = await orchestrator.process_turn("SUV for the family and commuting, budget 30k", context)
        assert response.metadata.handled_by == "readiness"
        assert response.next_phase == GraphState.RECOMMENDATION
        assert [r.vehicle_id for r in response.recommendations] == ["creta-2021", "tracker-2022", "compass-2019"]
        assert response.profile_delta["budget"] == 30000
        assert response.profile_delta["showed_recommendation"] is True

    @pytest.mark.asyncio
    async def test_readiness_asks(self, orchestrator):
        response = await orchestrator.process_turn("an automatic", make_context(GraphState.DISCOVERY))
        assert response.metadata.handled_by == "readiness"
        assert response.needs_more_info == ["budget", "usage"]
        assert response.response.startswith("Got it!")

    @pytest.mark.asyncio
    async def test_year_miss_offers_other_years(self, orchestrator):
        response = await orchestrator.process_turn("Onix 2025", make_context(GraphState.DISCOVERY))
        assert response.next_phase == GraphState.CLARIFICATION
        pending = response.profile_delta["pending"]
        assert isinstance(pending, AwaitingSuggestionAnswer)
        assert pending.years == [2020, 2019]
        assert "2020 and 2019" in response.response


class TestAbsorbingPhases:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("phase", [GraphState.HANDOFF, GraphState.END])
    async def test_fixed_reply_without_extraction(self, phase):
        nlu = ScriptedNLU()
        orchestrator = make_orchestrator(nlu=nlu)
        response = await orchestrator.process_turn("Onix 2019", make_context(phase))
        assert response.response == ABSORBING_MESSAGES[phase]
        assert response.next_phase == phase
        assert response.metadata.handled_by == "absorbing_phase"
        assert response.profile_delta == {}
        assert nlu.calls == []


class TestTotality:
    @pytest.mark.asyncio
    async def test_internal_error_becomes_apology(self, orchestrator, monkeypatch):
        async def explode(turn, services, steps=None):
            raise RuntimeError("boom")

        monkeypatch.setattr("sales_assistant.orchestrator.run_cascade", explode)
        context = make_context(GraphState.RECOMMENDATION)
        response = await orchestrator.process_turn("anything", context)
        assert response.response == APOLOGY_MESSAGE
        assert response.next_phase == GraphState.RECOMMENDATION
        assert response.metadata.source == "error"
        assert response.profile_delta == {}

    @pytest.mark.asyncio
    async def test_failing_extraction_still_answers(self):
        orchestrator = make_orchestrator(nlu=FailingNLU())
        response = await orchestrator.process_turn("Onix 2019", make_context(GraphState.DISCOVERY))
        assert response.metadata.handled_by == "exact_search"
        assert response.next_phase == GraphState.RECOMMENDATION

    @pytest.mark.asyncio
    async def test_failing_search_reports_no_results(self):
        orchestrator = make_orchestrator(search=FailingSearch())
        context = make_context(GraphState.DISCOVERY, message_count=2)
        response = await orchestrator.process_turn("SUV for the family and commuting, budget 30k", context)
        assert response.next_phase == GraphState.SEARCH
        assert response.recommendations == []
        assert "couldn't find anything" in response.response

    @pytest.mark.asyncio
    async def test_scripted_extraction_is_sanitized(self):
        nlu = ScriptedNLU({"something roomy": {"bodyType": "SUV", "showed_recommendation": True}})
        orchestrator = make_orchestrator(nlu=nlu)
        response = await orchestrator.process_turn("something roomy", make_context(GraphState.DISCOVERY))
        assert response.profile_delta == {"body_type": "suv"}
        assert nlu.calls == [("something roomy", [])]
