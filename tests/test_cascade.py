"""Tests for the ordered interception cascade."""

import pytest

from sales_assistant.conversation.cascade import INTERCEPTION_STEPS, InterceptionStep, run_cascade
from sales_assistant.conversation.state_machine import PhaseTrigger
from sales_assistant.schemas.conversation_schema import GraphState
from sales_assistant.schemas.profile_schema import AwaitingFinancing, AwaitingSuggestionAnswer
from tests.conftest import make_turn, shown


def _claim(text):
    async def handle(turn, services):
        return turn.respond(text, PhaseTrigger.QUESTION_ANSWERED)
    return handle


async def _decline(turn, services):
    turn.clear(pending=None)
    return None


class TestStepOrder:
    def test_priority_order(self):
        assert [step.name for step in INTERCEPTION_STEPS] == [
            "ride_hail_question",
            "trade_in_disambiguation",
            "exact_search",
            "seven_seat_check",
            "similar_approval",
            "awaiting_trade_in",
            "awaiting_financing",
            "ride_hail_alternatives",
            "post_recommendation",
            "alternative_year",
            "suggestion_answer",
            "specific_model",
            "question",
        ]


class TestRunCascade:
    @pytest.mark.asyncio
    async def test_first_claim_wins(self, services):
        called = []

        async def never(turn, services):
            called.append("never")
            return None

        steps = [
            InterceptionStep("skipped", lambda turn: False, never),
            InterceptionStep("declines", lambda turn: True, _decline),
            InterceptionStep("claims", lambda turn: True, _claim("first")),
            InterceptionStep("too_late", lambda turn: True, _claim("second")),
        ]
        turn = make_turn("hello", pending=AwaitingFinancing())
        response = await run_cascade(turn, services, steps)
        assert response.response == "first"
        assert response.metadata.handled_by == "claims"
        assert called == []

    @pytest.mark.asyncio
    async def test_declined_state_change_rides_along(self, services):
        steps = [
            InterceptionStep("declines", lambda turn: True, _decline),
            InterceptionStep("claims", lambda turn: turn.pending is None, _claim("ok")),
        ]
        response = await run_cascade(make_turn("hello", pending=AwaitingFinancing()), services, steps)
        assert response.profile_delta == {"pending": None}

    @pytest.mark.asyncio
    async def test_nobody_claims(self, services):
        assert await run_cascade(make_turn("blue"), services) is None


class TestRouting:
    @pytest.mark.asyncio
    async def test_owned_car_beats_exact_search(self, services):
        turn = make_turn("I have a Civic 2010, looking for a truck", extracted={"body_type": "pickup"})
        response = await run_cascade(turn, services)
        assert response.metadata.handled_by == "trade_in_disambiguation"

    @pytest.mark.asyncio
    async def test_exact_search(self, services):
        turn = make_turn("Onix 2019", extracted={"model": "onix", "min_year": 2019})
        response = await run_cascade(turn, services)
        assert response.metadata.handled_by == "exact_search"

    @pytest.mark.asyncio
    async def test_seven_seats(self, services):
        turn = make_turn("7 seats", extracted={"min_seats": 7}, budget=15000)
        response = await run_cascade(turn, services)
        assert response.metadata.handled_by == "seven_seat_check"

    @pytest.mark.asyncio
    async def test_pending_skips_exact_search(self, services):
        turn = make_turn("Onix 2020", GraphState.CLARIFICATION, {"model": "onix", "min_year": 2020},
                         pending=AwaitingSuggestionAnswer(searched_item="onix 2025", years=[2020, 2019]))
        response = await run_cascade(turn, services)
        assert response.metadata.handled_by == "alternative_year"

    @pytest.mark.asyncio
    async def test_financing_reply_after_recommendation(self, services):
        turn = make_turn("5k down", GraphState.NEGOTIATION, pending=AwaitingFinancing(),
                         showed_recommendation=True, shown_vehicles=[shown("creta-2021")])
        response = await run_cascade(turn, services)
        assert response.metadata.handled_by == "awaiting_financing"
        assert response.next_phase == GraphState.HANDOFF

    @pytest.mark.asyncio
    async def test_post_recommendation(self, services):
        turn = make_turn("I like it", GraphState.RECOMMENDATION,
                         showed_recommendation=True, shown_vehicles=[shown("onix-2020")])
        response = await run_cascade(turn, services)
        assert response.metadata.handled_by == "post_recommendation"

    @pytest.mark.asyncio
    async def test_availability_question_after_recommendation(self, services):
        turn = make_turn("Do you have any pickups?", GraphState.RECOMMENDATION,
                         showed_recommendation=True, shown_vehicles=[shown("creta-2021")])
        response = await run_cascade(turn, services)
        assert response.metadata.handled_by == "question"
        assert response.profile_delta["body_type"] == "pickup"

    @pytest.mark.asyncio
    async def test_specific_model(self, services):
        turn = make_turn("I'm interested in a Corolla", extracted={"model": "corolla"})
        response = await run_cascade(turn, services)
        assert response.metadata.handled_by == "specific_model"

    @pytest.mark.asyncio
    async def test_ride_hail_question_beats_exact_search(self, services):
        turn = make_turn("Is the Onix 2019 ok for Uber X?", extracted={"model": "onix", "min_year": 2019})
        response = await run_cascade(turn, services)
        assert response.metadata.handled_by == "ride_hail_question"
        assert response.metadata.extra["vehicle_id"] == "onix-2019"

    @pytest.mark.asyncio
    async def test_ride_hail_question_after_recommendation(self, services):
        turn = make_turn("Does the Creta work for Uber Black?", GraphState.RECOMMENDATION,
                         showed_recommendation=True, shown_vehicles=[shown("creta-2021"), shown("compass-2019")])
        response = await run_cascade(turn, services)
        assert response.metadata.handled_by == "ride_hail_question"
        assert response.response.startswith("Yes, the Hyundai Creta 2021 qualifies")
        assert response.next_phase == GraphState.RECOMMENDATION

    @pytest.mark.asyncio
    async def test_brand_request_replaces_earlier_model(self, services):
        turn = make_turn("show me toyota cars", extracted={"brand": "toyota"}, model="onix", min_year=2019)
        response = await run_cascade(turn, services)
        assert response.metadata.handled_by == "specific_model"
        assert [r.vehicle_id for r in response.recommendations] == ["corolla-2022", "hilux-2017"]
        assert response.profile_delta["model"] is None
