"""Tests for profile merging, readiness assessment and the profile-to-query mapping."""

import pytest

from sales_assistant.config import ReadinessConfig, SearchConfig
from sales_assistant.conversation import (
    ReadinessAction,
    ReadinessAssessor,
    apply_delta,
    combine_deltas,
    merge_profile,
)
from sales_assistant.conversation.readiness import identify_missing_info, summarize_context
from sales_assistant.schemas.conversation_schema import ChatMessage, GraphState, Role
from sales_assistant.schemas.profile_schema import AwaitingTradeIn, CustomerProfile
from sales_assistant.search.query_builder import DEFAULT_SEARCH_TEXT, build_search_query
from tests.conftest import make_context, shown


class TestMergeProfile:
    def test_scalar_last_write_wins(self):
        profile = CustomerProfile(budget=20000, body_type="hatch")
        merged = merge_profile(profile, {"budget": 25000})
        assert merged.budget == 25000
        assert merged.body_type == "hatch"

    def test_array_union_is_idempotent(self):
        profile = CustomerProfile(priorities=["economical"])
        once = merge_profile(profile, {"priorities": ["economical", "space"]})
        twice = merge_profile(once, {"priorities": ["economical", "space"]})
        assert once.priorities == ["economical", "space"]
        assert twice.priorities == once.priorities

    def test_control_state_untouched(self):
        profile = CustomerProfile(pending=AwaitingTradeIn())
        merged = merge_profile(profile, {"pending": None, "showed_recommendation": True})
        assert isinstance(merged.pending, AwaitingTradeIn)
        assert merged.showed_recommendation is False

    def test_original_not_mutated(self):
        profile = CustomerProfile()
        merge_profile(profile, {"budget": 1000})
        assert profile.budget is None


class TestApplyDelta:
    def test_none_clears(self):
        profile = CustomerProfile(model="onix", pending=AwaitingTradeIn())
        updated = apply_delta(profile, {"model": None, "pending": None})
        assert updated.model is None
        assert updated.pending is None

    def test_pending_from_dict(self):
        updated = apply_delta(CustomerProfile(), {"pending": {"kind": "awaiting_suggestion_answer", "years": [2020]}})
        assert updated.awaiting_suggestion
        assert updated.pending.years == [2020]

    def test_shown_vehicles_replaced(self):
        profile = CustomerProfile(shown_vehicles=[shown("onix-2019"), shown("onix-2020")])
        updated = apply_delta(profile, {"shown_vehicles": [shown("creta-2021")]})
        assert [v.vehicle_id for v in updated.shown_vehicles] == ["creta-2021"]

    def test_unknown_keys_ignored(self):
        assert apply_delta(CustomerProfile(), {"nonsense": 1}) == CustomerProfile()

    def test_combine_unions_tags(self):
        combined = combine_deltas({"priorities": ["space"], "budget": 1}, {"priorities": ["safety"], "budget": 2})
        assert combined == {"priorities": ["space", "safety"], "budget": 2}


class TestReadiness:
    def setup_method(self):
        self.assessor = ReadinessAssessor(ReadinessConfig(partial_info_messages=5, force_recommend_messages=8))

    def test_all_required_known(self):
        result = self.assessor.assess(CustomerProfile(budget=20000, usage="city"), message_count=1)
        assert result.can_recommend
        assert result.action == ReadinessAction.RECOMMEND_NOW

    def test_main_use_and_budget_range_are_not_slots(self):
        result = self.assessor.assess(CustomerProfile(budget_max=20000, main_use="family"), message_count=1)
        assert not result.can_recommend
        assert result.missing_required == ["budget", "usage"]

    def test_one_missing_early_keeps_asking(self):
        result = self.assessor.assess(CustomerProfile(budget=20000), message_count=4)
        assert not result.can_recommend
        assert result.missing_required == ["usage"]

    def test_one_missing_after_partial_threshold(self):
        result = self.assessor.assess(CustomerProfile(budget=20000), message_count=5)
        assert result.can_recommend

    def test_two_missing_before_force_threshold(self):
        result = self.assessor.assess(CustomerProfile(), message_count=7)
        assert not result.can_recommend

    def test_anti_stall(self):
        result = self.assessor.assess(CustomerProfile(), message_count=8)
        assert result.can_recommend
        assert "partial" in result.reasoning

    def test_more_information_never_lowers_confidence(self):
        steps = [
            CustomerProfile(),
            CustomerProfile(budget=20000),
            CustomerProfile(budget=20000, body_type="suv"),
            CustomerProfile(budget=20000, body_type="suv", usage="city"),
            CustomerProfile(budget=20000, body_type="suv", usage="city", transmission="automatic"),
        ]
        confidences = [self.assessor.assess(p, message_count=1).confidence for p in steps]
        assert confidences == sorted(confidences)
        assert confidences[-1] <= 100

    def test_next_question_asks_budget_first(self):
        assert "spend" in self.assessor.next_question(CustomerProfile(usage="city"))

    def test_next_question_then_usage(self):
        assert "use the car" in self.assessor.next_question(CustomerProfile(budget=20000))

    def test_missing_info(self):
        assert identify_missing_info(CustomerProfile(body_type="suv")) == ["budget", "usage"]

    def test_summary_lists_last_messages(self):
        context = make_context(GraphState.RECOMMENDATION, message_count=3)
        context.messages = [
            ChatMessage(role=Role.USER, content="SUV please"),
            ChatMessage(role=Role.ASSISTANT, content="Here you go"),
        ]
        summary = summarize_context(context)
        assert "Phase: RECOMMENDATION" in summary
        assert "Customer: SUV please" in summary
        assert "Assistant: Here you go" in summary


class TestSearchQuery:
    def setup_method(self):
        self.config = SearchConfig(
            result_limit=5, min_match_score=60, wide_limit=20,
            ride_hail_standard_max_age=10, ride_hail_premium_max_age=6,
        )

    def test_text_order(self):
        profile = CustomerProfile(model="onix", min_year=2019, body_type="hatch", usage="city", priorities=["economical"])
        query = build_search_query(profile, self.config)
        assert query.search_text == "onix 2019 hatch city economical"

    def test_default_text(self):
        assert build_search_query(CustomerProfile(), self.config).search_text == DEFAULT_SEARCH_TEXT

    def test_budget_and_limit(self):
        query = build_search_query(CustomerProfile(budget=30000, budget_min=10000), self.config)
        assert query.filters.max_price == 30000
        assert query.filters.min_price == 10000
        assert query.filters.limit == 5
        assert query.min_match_score == 60

    def test_ride_hail_standard_floor(self):
        query = build_search_query(CustomerProfile(main_use="ride_hail"), self.config, current_year=2026)
        assert query.filters.min_year == 2016
        assert query.filters.ride_hail_standard
        assert not query.filters.ride_hail_premium

    def test_ride_hail_premium_floor(self):
        profile = CustomerProfile(main_use="ride_hail", ride_hail_tier="premium", min_year=2022)
        query = build_search_query(profile, self.config, current_year=2026)
        assert query.filters.min_year == 2022
        assert query.filters.ride_hail_premium

    def test_premium_tag_counts(self):
        profile = CustomerProfile(main_use="ride_hail", priorities=["uber black"])
        query = build_search_query(profile, self.config, current_year=2026)
        assert query.filters.min_year == 2020

    @pytest.mark.parametrize("profile", [
        CustomerProfile(main_use="family", body_type="pickup"),
        CustomerProfile(main_use="family", priorities=["cargo space"]),
    ])
    def test_family_never_with_cargo(self, profile):
        filters = build_search_query(profile, self.config).filters
        assert not filters.family_friendly
        assert filters.work_ready

    def test_family(self):
        filters = build_search_query(CustomerProfile(main_use="family"), self.config).filters
        assert filters.family_friendly
        assert not filters.work_ready
