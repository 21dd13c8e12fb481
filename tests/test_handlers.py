"""Tests for the interception handlers, one sub-flow at a time."""

import pytest

from sales_assistant.handlers.exact_search import handle_exact_search, handle_seven_seats, requested_model_year
from sales_assistant.handlers.formatting import join_years
from sales_assistant.handlers.greeting import handle_greeting
from sales_assistant.handlers.post_recommendation import handle_post_recommendation
from sales_assistant.handlers.questions import handle_question
from sales_assistant.handlers.recommend import NO_RESULTS_MESSAGE, recommend_or_ask
from sales_assistant.handlers.ride_hail import handle_ride_hail_alternatives, handle_ride_hail_question
from sales_assistant.handlers.specific_model import handle_specific_model
from sales_assistant.handlers.suggestion import (
    handle_alternative_year,
    handle_similar_approval,
    handle_suggestion_answer,
)
from sales_assistant.handlers.trade_in import (
    build_deal_summary,
    down_payment_amount,
    handle_awaiting_financing,
    handle_awaiting_trade_in,
    handle_trade_in_disambiguation,
)
from sales_assistant.schemas.conversation_schema import GraphState
from sales_assistant.schemas.profile_schema import (
    AwaitingFinancing,
    AwaitingRideHailAlternatives,
    AwaitingSimilarApproval,
    AwaitingSuggestionAnswer,
    AwaitingTradeIn,
    CustomerProfile,
    SearchType,
)
from sales_assistant.tools.knowledge import FALLBACK_ANSWER
from tests.conftest import FailingKnowledge, inventory_without, make_orchestrator, make_turn, shown


class TestFormatting:
    def test_join_years(self):
        assert join_years([2020]) == "2020"
        assert join_years([2020, 2019]) == "2020 and 2019"
        assert join_years([2021, 2020, 2019]) == "2021, 2020 and 2019"


class TestGreeting:
    @pytest.mark.asyncio
    async def test_welcome_in_start(self, services):
        response = await handle_greeting(make_turn("Hi", GraphState.START), services)
        assert services.config.business.assistant_name in response.response
        assert response.next_phase == GraphState.GREETING

    @pytest.mark.asyncio
    async def test_name_in_greeting(self, services):
        response = await handle_greeting(make_turn("I'm Ana", GraphState.GREETING), services)
        assert response.response.startswith("Nice to meet you, Ana!")
        assert response.profile_delta["customer_name"] == "Ana"
        assert response.next_phase == GraphState.DISCOVERY

    @pytest.mark.asyncio
    async def test_preferences_skip_welcome(self, services):
        turn = make_turn("Hi, I'm Carlos, looking for an SUV", GraphState.START, {"body_type": "suv"})
        assert await handle_greeting(turn, services) is None
        assert turn.carry == {"customer_name": "Carlos"}

    @pytest.mark.asyncio
    async def test_question_passes_through(self, services):
        assert await handle_greeting(make_turn("what are your hours?", GraphState.GREETING), services) is None


class TestExactSearch:
    @pytest.mark.asyncio
    async def test_found(self, services):
        turn = make_turn("Onix 2019", extracted={"model": "onix", "min_year": 2019})
        response = await handle_exact_search(turn, services)
        assert response.next_phase == GraphState.RECOMMENDATION
        assert response.can_recommend
        assert response.profile_delta["last_search_type"] == SearchType.SPECIFIC
        assert [v.vehicle_id for v in response.profile_delta["shown_vehicles"]] == ["onix-2019"]
        assert response.metadata.extra["search_type"] == "specific"

    @pytest.mark.asyncio
    async def test_other_years_offered(self, services):
        turn = make_turn("Onix 2025", extracted={"model": "onix", "min_year": 2025})
        response = await handle_exact_search(turn, services)
        assert "2020 and 2019" in response.response
        pending = response.profile_delta["pending"]
        assert isinstance(pending, AwaitingSuggestionAnswer)
        assert pending.years == [2020, 2019]
        assert response.next_phase == GraphState.CLARIFICATION

    @pytest.mark.asyncio
    async def test_unknown_model_declines(self, services):
        turn = make_turn("Kicks 2020", extracted={"model": "kicks", "min_year": 2020})
        assert await handle_exact_search(turn, services) is None

    def test_range_is_not_exact(self):
        assert requested_model_year(make_turn("Onix 2018 to 2020")) == (None, None)

    def test_profile_values_ignored_after_recommendation(self):
        turn = make_turn("hmm", model="onix", min_year=2019, showed_recommendation=True)
        assert requested_model_year(turn) == (None, None)

    def test_profile_values_used_before_recommendation(self):
        assert requested_model_year(make_turn("2019", model="onix")) == ("onix", 2019)

    def test_profile_model_ignored_for_another_brand(self):
        turn = make_turn("show me toyota cars", extracted={"brand": "toyota"}, model="onix", min_year=2019)
        assert requested_model_year(turn) == (None, None)


class TestSevenSeats:
    @pytest.mark.asyncio
    async def test_unmet_within_budget(self, services):
        turn = make_turn("7 seats", min_seats=7, budget=15000)
        response = await handle_seven_seats(turn, services)
        assert "7-seat" in response.response
        assert response.profile_delta["pending"].searched_item == "7 seats"

    @pytest.mark.asyncio
    async def test_met_declines(self, services):
        assert await handle_seven_seats(make_turn("7 seats", min_seats=7, budget=20000), services) is None


class TestTradeInDisambiguation:
    @pytest.mark.asyncio
    async def test_owned_car_is_not_the_wanted_one(self, services):
        turn = make_turn(
            "I have a Civic 2010, looking for a truck",
            extracted={"body_type": "pickup", "model": "civic", "min_year": 2010},
        )
        response = await handle_trade_in_disambiguation(turn, services)
        delta = response.profile_delta
        assert delta["trade_in_model"] == "civic"
        assert delta["trade_in_year"] == 2010
        assert delta["has_trade_in"] is True
        assert delta["model"] is None
        assert delta["min_year"] is None
        assert "pickup" in response.response
        assert "budget" in response.needs_more_info

    @pytest.mark.asyncio
    async def test_after_recommendation_starts_negotiation(self, services):
        turn = make_turn(
            "I have a Gol 2015 with 90,000 km to trade in",
            GraphState.RECOMMENDATION,
            showed_recommendation=True,
            shown_vehicles=[shown("creta-2021")],
        )
        response = await handle_trade_in_disambiguation(turn, services)
        assert "Volkswagen Gol 2015 with 90,000 km" in response.response
        assert "Hyundai Creta 2021" in response.response
        assert response.next_phase == GraphState.NEGOTIATION


class TestAwaitingTradeIn:
    @pytest.mark.asyncio
    async def test_details_then_asks_down_payment(self, services):
        turn = make_turn("Gol 2015 with 90k km", GraphState.NEGOTIATION,
                         pending=AwaitingTradeIn(), wants_financing=True)
        response = await handle_awaiting_trade_in(turn, services)
        assert isinstance(response.profile_delta["pending"], AwaitingFinancing)
        assert response.profile_delta["trade_in_km"] == 90000

    @pytest.mark.asyncio
    async def test_no_details_declines(self, services):
        turn = make_turn("not sure", GraphState.NEGOTIATION, pending=AwaitingTradeIn())
        assert await handle_awaiting_trade_in(turn, services) is None

    @pytest.mark.asyncio
    async def test_no_car_to_trade_closes_the_question(self, services):
        turn = make_turn("no, I don't have a car to trade", GraphState.NEGOTIATION,
                         pending=AwaitingTradeIn(), has_trade_in=True)
        response = await handle_awaiting_trade_in(turn, services)
        assert response.profile_delta["has_trade_in"] is False
        assert response.profile_delta["pending"] is None
        assert "finance it or pay in full" in response.response

    @pytest.mark.asyncio
    async def test_no_car_to_trade_while_financing_asks_down_payment(self, services):
        turn = make_turn("nope", GraphState.NEGOTIATION,
                         pending=AwaitingTradeIn(), has_trade_in=True, wants_financing=True)
        response = await handle_awaiting_trade_in(turn, services)
        assert response.profile_delta["has_trade_in"] is False
        assert isinstance(response.profile_delta["pending"], AwaitingFinancing)


class TestAwaitingFinancing:
    def _turn(self, message, **profile):
        return make_turn(message, GraphState.NEGOTIATION, pending=AwaitingFinancing(),
                         shown_vehicles=[shown("creta-2021")], **profile)

    def test_down_payment_ignores_years_and_km(self):
        assert down_payment_amount("5k down, my car is a 2015 gol with 90k km") == 5000
        assert down_payment_amount("gol 2015, 90k km") is None

    @pytest.mark.asyncio
    async def test_cash(self, services):
        response = await handle_awaiting_financing(self._turn("I'll pay cash"), services)
        assert response.profile_delta["wants_financing"] is False
        assert "Payment: in full" in response.response
        assert response.next_phase == GraphState.HANDOFF

    @pytest.mark.asyncio
    async def test_amount(self, services):
        response = await handle_awaiting_financing(self._turn("5k down"), services)
        assert response.profile_delta["financing_down_payment"] == 5000
        assert response.profile_delta["pending"] is None
        assert "5,000 down" in response.response
        assert response.next_phase == GraphState.HANDOFF

    @pytest.mark.asyncio
    async def test_no_down_payment(self, services):
        response = await handle_awaiting_financing(self._turn("no down payment"), services)
        assert response.profile_delta["financing_down_payment"] == 0
        assert "no down payment" in response.response

    @pytest.mark.asyncio
    async def test_trade_in_and_no_extra_cash(self, services):
        turn = self._turn("no", has_trade_in=True, trade_in_model="gol")
        response = await handle_awaiting_financing(turn, services)
        assert response.profile_delta["financing_down_payment"] == 0
        assert "Trade-in: Gol" in response.response
        assert response.next_phase == GraphState.HANDOFF

    @pytest.mark.asyncio
    async def test_trade_in_and_extra_cash(self, services):
        turn = self._turn("yes", has_trade_in=True, trade_in_model="gol")
        response = await handle_awaiting_financing(turn, services)
        assert "How much" in response.response
        assert "pending" not in response.profile_delta
        assert response.next_phase == GraphState.NEGOTIATION

    @pytest.mark.asyncio
    async def test_only_trade_in_keeps_waiting(self, services):
        response = await handle_awaiting_financing(self._turn("only the trade-in"), services)
        assert response.profile_delta["financing_down_payment"] == 0
        assert "pending" not in response.profile_delta
        assert response.next_phase == GraphState.NEGOTIATION

    @pytest.mark.asyncio
    async def test_trade_in_named_instead(self, services):
        response = await handle_awaiting_financing(self._turn("I have a Gol 2015"), services)
        assert response.profile_delta["trade_in_model"] == "gol"
        assert response.next_phase == GraphState.NEGOTIATION

    @pytest.mark.asyncio
    async def test_unrelated_declines(self, services):
        assert await handle_awaiting_financing(self._turn("hmm"), services) is None

    def test_summary(self):
        profile = CustomerProfile(
            shown_vehicles=[shown("creta-2021")], has_trade_in=True, trade_in_model="gol",
            trade_in_year=2015, wants_financing=True, financing_down_payment=0,
        )
        summary = build_deal_summary(profile)
        assert "Vehicle: Hyundai Creta 2021" in summary
        assert "Trade-in: Gol 2015" in summary
        assert "no down payment" in summary


class TestPostRecommendation:
    def _turn(self, message, extracted=None, **profile):
        profile.setdefault("shown_vehicles", [shown("creta-2021")])
        return make_turn(message, GraphState.RECOMMENDATION, extracted, showed_recommendation=True, **profile)

    @pytest.mark.asyncio
    async def test_question_goes_to_knowledge(self, services):
        response = await handle_post_recommendation(self._turn("Is there a warranty?"), services)
        assert "warranty" in response.response
        assert response.metadata.source == "knowledge"
        assert response.next_phase == GraphState.RECOMMENDATION

    @pytest.mark.asyncio
    async def test_knowledge_failure_falls_back(self):
        services = make_orchestrator(knowledge=FailingKnowledge()).services
        response = await handle_post_recommendation(self._turn("Is there a warranty?"), services)
        assert response.response == FALLBACK_ANSWER

    @pytest.mark.asyncio
    async def test_availability_question_declines(self, services):
        assert await handle_post_recommendation(self._turn("Do you have any pickups?"), services) is None

    @pytest.mark.asyncio
    async def test_other_options_same_body_type(self, services):
        response = await handle_post_recommendation(self._turn("show me other options"), services)
        ids = [v.vehicle_id for v in response.profile_delta["shown_vehicles"]]
        assert ids == ["tracker-2022", "compass-2019"]
        assert response.next_phase == GraphState.RECOMMENDATION

    @pytest.mark.asyncio
    async def test_nothing_cheaper(self, services):
        response = await handle_post_recommendation(self._turn("something cheaper", budget=30000), services)
        delta = response.profile_delta
        assert delta["exclude_vehicle_ids"] == ["creta-2021"]
        assert delta["showed_recommendation"] is False
        assert delta["pending"].searched_item == "suv"
        assert response.next_phase == GraphState.DISCOVERY

    @pytest.mark.asyncio
    async def test_schedule(self, services):
        response = await handle_post_recommendation(self._turn("I want to schedule a test drive"), services)
        assert "full name" in response.response
        assert response.next_phase == GraphState.HANDOFF

    @pytest.mark.asyncio
    async def test_trade_in_without_details(self, services):
        response = await handle_post_recommendation(self._turn("can I trade in my car?"), services)
        assert isinstance(response.profile_delta["pending"], AwaitingTradeIn)
        assert response.profile_delta["has_trade_in"] is True

    @pytest.mark.asyncio
    async def test_financing_asks_down_payment(self, services):
        response = await handle_post_recommendation(self._turn("I want to finance it"), services)
        assert isinstance(response.profile_delta["pending"], AwaitingFinancing)
        assert "Hyundai Creta 2021" in response.response
        assert response.next_phase == GraphState.NEGOTIATION

    @pytest.mark.asyncio
    async def test_financing_with_known_trade_in_hands_off(self, services):
        turn = self._turn("I want to finance it", has_trade_in=True, trade_in_model="gol")
        response = await handle_post_recommendation(turn, services)
        assert response.next_phase == GraphState.HANDOFF
        assert "Financing: to be simulated" in response.response

    @pytest.mark.asyncio
    async def test_interest_by_ordinal(self, services):
        turn = self._turn("I like the second one", shown_vehicles=[shown("creta-2021"), shown("tracker-2022")])
        response = await handle_post_recommendation(turn, services)
        assert [v.vehicle_id for v in response.profile_delta["shown_vehicles"]] == ["tracker-2022"]
        assert response.next_phase == GraphState.NEGOTIATION

    @pytest.mark.asyncio
    async def test_new_model_reopens_search(self, services):
        turn = self._turn("maybe a corolla instead", {"model": "corolla"})
        assert await handle_post_recommendation(turn, services) is None
        assert turn.carry == {"showed_recommendation": False}


class TestSuggestions:
    @pytest.mark.asyncio
    async def test_yes_shows_newest_offered_year(self, services):
        turn = make_turn("yes", GraphState.CLARIFICATION,
                         pending=AwaitingSuggestionAnswer(searched_item="onix 2025", years=[2020, 2019]))
        response = await handle_suggestion_answer(turn, services)
        assert response.profile_delta["min_year"] == 2020
        assert [v.vehicle_id for v in response.profile_delta["shown_vehicles"]] == ["onix-2020"]

    @pytest.mark.asyncio
    async def test_named_year(self, services):
        turn = make_turn("the 2019 please", GraphState.CLARIFICATION,
                         pending=AwaitingSuggestionAnswer(searched_item="onix 2025", years=[2020, 2019]))
        response = await handle_alternative_year(turn, services)
        assert [v.vehicle_id for v in response.profile_delta["shown_vehicles"]] == ["onix-2019"]

    @pytest.mark.asyncio
    async def test_no_forgets_the_model(self, services):
        turn = make_turn("no", GraphState.CLARIFICATION, model="onix", min_year=2025,
                         pending=AwaitingSuggestionAnswer(searched_item="onix 2025", years=[2020, 2019]))
        response = await handle_suggestion_answer(turn, services)
        assert response.profile_delta["model"] is None
        assert response.profile_delta["pending"] is None
        assert response.next_phase == GraphState.DISCOVERY

    @pytest.mark.asyncio
    async def test_no_to_five_seats_forgets_seat_count(self, services):
        turn = make_turn("no", GraphState.CLARIFICATION, min_seats=7, people=7,
                         pending=AwaitingSuggestionAnswer(searched_item="7 seats"))
        response = await handle_suggestion_answer(turn, services)
        assert response.profile_delta["min_seats"] is None
        assert response.profile_delta["people"] is None
        assert response.profile_delta["pending"] is None

    @pytest.mark.asyncio
    async def test_new_preference_drops_offer(self, services):
        turn = make_turn("actually a sedan", GraphState.CLARIFICATION, {"body_type": "sedan"},
                         min_seats=7, pending=AwaitingSuggestionAnswer(searched_item="7 seats"))
        assert await handle_suggestion_answer(turn, services) is None
        assert turn.carry == {"pending": None, "min_seats": None, "people": None}

    @pytest.mark.asyncio
    async def test_seven_seat_substitute_asks_to_stretch_budget(self, services):
        turn = make_turn("yes", GraphState.CLARIFICATION, min_seats=7, budget=15000,
                         pending=AwaitingSuggestionAnswer(searched_item="7 seats"))
        response = await handle_suggestion_answer(turn, services)
        assert "stretch" in response.response
        assert response.profile_delta["body_type"] == "suv"
        assert response.profile_delta["min_seats"] is None

    @pytest.mark.asyncio
    async def test_seven_seat_substitute_shows_suvs(self, services):
        turn = make_turn("sure", GraphState.CLARIFICATION, min_seats=7, budget=26000,
                         pending=AwaitingSuggestionAnswer(searched_item="7 seats"))
        response = await handle_suggestion_answer(turn, services)
        assert [v.vehicle_id for v in response.profile_delta["shown_vehicles"]] == ["creta-2021", "tracker-2022"]

    @pytest.mark.asyncio
    async def test_similar_approved(self, services):
        candidates = [shown("creta-2021"), shown("tracker-2022")]
        turn = make_turn("yes please", GraphState.CLARIFICATION,
                         pending=AwaitingSimilarApproval(candidates=candidates))
        response = await handle_similar_approval(turn, services)
        assert response.profile_delta["shown_vehicles"] == candidates
        assert response.profile_delta["last_search_type"] == SearchType.RECOMMENDATION

    @pytest.mark.asyncio
    async def test_similar_refused(self, services):
        turn = make_turn("no thanks", GraphState.CLARIFICATION,
                         pending=AwaitingSimilarApproval(candidates=[shown("creta-2021")]))
        assert await handle_similar_approval(turn, services) is None
        assert turn.profile.pending is None


class TestSpecificModel:
    @pytest.mark.asyncio
    async def test_in_stock(self, services):
        turn = make_turn("I'm interested in a Corolla", extracted={"model": "corolla"})
        response = await handle_specific_model(turn, services)
        assert [v.vehicle_id for v in response.profile_delta["shown_vehicles"]] == ["corolla-2022"]
        assert response.profile_delta["last_search_type"] == SearchType.SPECIFIC

    @pytest.mark.asyncio
    async def test_out_of_stock_offers_similar(self, services):
        turn = make_turn("a nissan kicks", extracted={"model": "kicks", "brand": "nissan"})
        response = await handle_specific_model(turn, services)
        pending = response.profile_delta["pending"]
        assert isinstance(pending, AwaitingSimilarApproval)
        assert [v.vehicle_id for v in pending.candidates] == ["creta-2021", "tracker-2022", "compass-2019"]
        assert response.next_phase == GraphState.CLARIFICATION

    @pytest.mark.asyncio
    async def test_brand_request_drops_earlier_model(self, services):
        turn = make_turn("show me toyota cars", extracted={"brand": "toyota"}, model="onix", min_year=2019)
        response = await handle_specific_model(turn, services)
        assert [r.vehicle_id for r in response.recommendations] == ["corolla-2022", "hilux-2017"]
        assert response.profile_delta["model"] is None
        assert response.profile_delta["min_year"] is None
        assert response.next_phase == GraphState.RECOMMENDATION

    @pytest.mark.asyncio
    async def test_new_model_drops_earlier_brand(self, services):
        turn = make_turn("what about a corolla", extracted={"model": "corolla"}, brand="chevrolet", model="onix")
        response = await handle_specific_model(turn, services)
        assert [r.vehicle_id for r in response.recommendations] == ["corolla-2022"]
        assert response.profile_delta["brand"] is None
        assert response.profile_delta["model"] == "corolla"

    @pytest.mark.asyncio
    async def test_similarity_request_declines(self, services):
        turn = make_turn("something like a Corolla", extracted={"model": "corolla"})
        assert await handle_specific_model(turn, services) is None


class TestRideHail:
    @pytest.mark.asyncio
    async def test_lists_premium_cars(self, services):
        response = await handle_ride_hail_question(make_turn("Which cars qualify for Uber Black?"), services)
        assert [r.vehicle_id for r in response.recommendations] == ["creta-2021", "tracker-2022", "corolla-2022"]
        assert response.profile_delta["ride_hail_tier"] == "premium"
        assert response.profile_delta["main_use"] == "ride_hail"
        assert response.next_phase == GraphState.RECOMMENDATION

    @pytest.mark.asyncio
    async def test_standard_only_car_asked_about_premium(self, services):
        turn = make_turn("Is the Civic ok for Uber Black?", extracted={"model": "civic"})
        response = await handle_ride_hail_question(turn, services)
        assert "doesn't qualify for the premium category (Black)" in response.response
        assert "does qualify for the standard category (X)" in response.response
        assert response.metadata.extra["vehicle_id"] == "civic-2018"

    @pytest.mark.asyncio
    async def test_model_out_of_stock_asks_city_and_category(self, services):
        turn = make_turn("Is the Kicks eligible for Uber?", extracted={"model": "kicks"})
        response = await handle_ride_hail_question(turn, services)
        assert response.response.startswith("We don't have the Kicks in stock")
        assert response.recommendations == []

    @pytest.mark.asyncio
    async def test_no_premium_stock_offers_standard(self):
        services = make_orchestrator(
            search=inventory_without("corolla-2022", "creta-2021", "tracker-2022")
        ).services
        response = await handle_ride_hail_question(make_turn("Do you have cars for Uber Black?"), services)
        assert isinstance(response.profile_delta["pending"], AwaitingRideHailAlternatives)
        assert response.next_phase == GraphState.CLARIFICATION
        assert response.recommendations == []

    @pytest.mark.asyncio
    async def test_standard_alternatives_accepted(self, services):
        turn = make_turn("yes please", GraphState.CLARIFICATION, pending=AwaitingRideHailAlternatives())
        response = await handle_ride_hail_alternatives(turn, services)
        assert [r.vehicle_id for r in response.recommendations] == [
            "onix-2019", "onix-2020", "hb20-2021", "spin-2019", "virtus-2020",
        ]
        assert response.profile_delta["ride_hail_tier"] == "standard"
        assert response.profile_delta["pending"] is None

    @pytest.mark.asyncio
    async def test_standard_alternatives_refused(self, services):
        turn = make_turn("no thanks", GraphState.CLARIFICATION, pending=AwaitingRideHailAlternatives())
        response = await handle_ride_hail_alternatives(turn, services)
        assert response.profile_delta == {"pending": None}
        assert response.next_phase == GraphState.DISCOVERY

    @pytest.mark.asyncio
    async def test_other_reply_drops_offer(self, services):
        turn = make_turn("what about a pickup?", GraphState.CLARIFICATION, pending=AwaitingRideHailAlternatives())
        assert await handle_ride_hail_alternatives(turn, services) is None
        assert turn.carry == {"pending": None}


class TestQuestions:
    @pytest.mark.asyncio
    async def test_availability(self, services):
        response = await handle_question(make_turn("Do you have any pickups?"), services)
        assert [v.vehicle_id for v in response.profile_delta["shown_vehicles"]] == ["strada-2021", "hilux-2017"]
        assert response.profile_delta["last_search_type"] == SearchType.CATEGORY

    @pytest.mark.asyncio
    async def test_free_form(self, services):
        response = await handle_question(make_turn("What are your opening hours?"), services)
        assert "Monday to Saturday" in response.response
        assert response.next_phase == GraphState.DISCOVERY
        assert response.needs_more_info == ["budget", "usage", "body_type"]


class TestRecommendOrAsk:
    @pytest.mark.asyncio
    async def test_asks_when_not_ready(self, services):
        response = await recommend_or_ask(make_turn("an SUV", extracted={"body_type": "suv"}), services)
        assert response.response.startswith("Got it!")
        assert response.needs_more_info == ["budget", "usage"]
        assert response.next_phase == GraphState.CLARIFICATION

    @pytest.mark.asyncio
    async def test_recommends_when_ready(self, services):
        turn = make_turn("ok", budget=30000, usage="city", main_use="family", body_type="suv")
        response = await recommend_or_ask(turn, services)
        ids = [v.vehicle_id for v in response.profile_delta["shown_vehicles"]]
        assert ids == ["creta-2021", "tracker-2022", "compass-2019"]
        assert response.metadata.extra["search_type"] == "recommendation"

    @pytest.mark.asyncio
    async def test_already_shown_excluded(self, services):
        turn = make_turn("ok", budget=30000, usage="city", main_use="family", body_type="suv",
                         shown_vehicles=[shown("creta-2021")])
        response = await recommend_or_ask(turn, services)
        ids = [v.vehicle_id for v in response.profile_delta["shown_vehicles"]]
        assert ids == ["tracker-2022", "compass-2019"]

    @pytest.mark.asyncio
    async def test_no_results(self, services):
        response = await recommend_or_ask(make_turn("ok", budget=5000, usage="city"), services)
        assert response.response == NO_RESULTS_MESSAGE
        assert response.profile_delta["exclude_vehicle_ids"] == []
        assert response.next_phase == GraphState.SEARCH
