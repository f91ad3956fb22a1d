import pytest

from tests.mock_llm_service import sample_itinerary
from travel_planner.exceptions import GenerationError
from travel_planner.services.normalizer import (
    DEFAULT_BEST_TIME_TO_VISIT,
    DEFAULT_LOCAL_CUISINE,
    DEFAULT_MEAL_LOCATION,
    DEFAULT_RECOMMENDED_FOR,
    DEFAULT_SUITABLE_FOR,
    DEFAULT_WEATHER_CONSIDERATION,
    coerce_fields,
    fill_defaults,
    fill_missing_days,
    normalize_itinerary,
    reconcile_sum,
    rescale_to_budget,
    validate_structure,
)


def breakdown(accommodation, food, activities, transportation, miscellaneous, total):
    return {
        "accommodation": accommodation,
        "food": food,
        "activities": activities,
        "transportation": transportation,
        "miscellaneous": miscellaneous,
        "total": total,
    }


class TestValidateStructure:
    def test_accepts_complete_response(self):
        validate_structure(sample_itinerary())

    @pytest.mark.parametrize("field", ["days", "accommodation", "transportation", "tips"])
    def test_missing_list_field(self, field):
        data = sample_itinerary()
        del data[field]
        with pytest.raises(GenerationError, match=field):
            validate_structure(data)

    def test_list_field_with_wrong_type(self):
        data = sample_itinerary()
        data["days"] = {"day": 1}
        with pytest.raises(GenerationError, match="days"):
            validate_structure(data)

    def test_budget_breakdown_must_be_object(self):
        data = sample_itinerary()
        data["budgetBreakdown"] = [1, 2, 3]
        with pytest.raises(GenerationError, match="budget breakdown"):
            validate_structure(data)

    def test_empty_lists_are_accepted(self):
        data = sample_itinerary()
        data["days"] = []
        data["tips"] = []
        validate_structure(data)


class TestFillMissingDays:
    def test_gaps_filled_with_placeholders(self):
        data = {"days": [{"day": 2, "activities": [], "meals": []}]}
        fill_missing_days(data, duration=3)

        assert [d["day"] for d in data["days"]] == [1, 2, 3]
        placeholder = data["days"][0]
        assert placeholder["activities"][0]["name"] == "Free time to explore"
        assert [m["type"] for m in placeholder["meals"]] == ["breakfast", "lunch", "dinner"]
        assert [m["cost"] for m in placeholder["meals"]] == [500, 700, 900]

    def test_sorted_and_extra_days_dropped(self):
        data = {"days": [{"day": 5}, {"day": 2}, {"day": 1}, {"day": 3}]}
        fill_missing_days(data, duration=3)
        assert [d["day"] for d in data["days"]] == [1, 2, 3]

    def test_duplicates_keep_first(self):
        data = {"days": [{"day": 1, "tag": "first"}, {"day": 1, "tag": "second"}]}
        fill_missing_days(data, duration=1)
        assert len(data["days"]) == 1
        assert data["days"][0]["tag"] == "first"

    def test_unusable_indices_replaced(self):
        data = {"days": [{"day": "2"}, {"day": None}, {"day": 0}, "not a day"]}
        fill_missing_days(data, duration=2)
        assert [d["day"] for d in data["days"]] == [1, 2]
        assert "activities" not in data["days"][1]


class TestReconcileSum:
    def test_total_replaced_when_off_by_more_than_ten(self):
        b = breakdown(100, 100, 100, 100, 100, 1000)
        reconcile_sum(b)
        assert b["total"] == 500

    def test_small_discrepancy_kept(self):
        b = breakdown(100, 100, 100, 100, 100, 505)
        reconcile_sum(b)
        assert b["total"] == 505

    def test_missing_categories_count_as_zero(self):
        b = {"accommodation": 300, "food": "200", "total": 0}
        reconcile_sum(b)
        assert b["transportation"] == 0
        assert b["total"] == 500

    def test_non_finite_values_count_as_zero(self):
        # json.loads turns NaN and Infinity into floats
        b = breakdown(float("nan"), 100, float("inf"), 100, 100, float("-inf"))
        reconcile_sum(b)
        assert b["accommodation"] == 0
        assert b["activities"] == 0
        assert b["total"] == 300


class TestRescaleToBudget:
    def test_rescales_when_more_than_five_percent_off(self):
        b = breakdown(20000, 10000, 10000, 5000, 5000, 50000)
        rescale_to_budget(b, 60000)

        assert b["total"] == 60000
        assert [b[k] for k in ("accommodation", "food", "activities", "transportation", "miscellaneous")] == [
            24000, 12000, 12000, 6000, 6000
        ]

    def test_within_tolerance_untouched(self):
        b = breakdown(20000, 10000, 10000, 9000, 9000, 58000)
        rescale_to_budget(b, 60000)
        assert b["total"] == 58000
        assert b["accommodation"] == 20000

    def test_rounded_categories_stay_close_to_total(self):
        b = breakdown(333, 333, 333, 333, 333, 1665)
        rescale_to_budget(b, 10000)
        categories = [b[k] for k in ("accommodation", "food", "activities", "transportation", "miscellaneous")]
        assert all(isinstance(v, int) for v in categories)
        assert b["total"] == 10000
        assert abs(sum(categories) - b["total"]) <= 5

    def test_zero_total_goes_to_miscellaneous(self):
        b = breakdown(0, 0, 0, 0, 0, 0)
        rescale_to_budget(b, 20000)
        assert b["miscellaneous"] == 20000
        assert b["total"] == 20000


class TestFillDefaults:
    def test_missing_optional_fields_filled(self):
        data = sample_itinerary(days=1)
        del data["bestTimeToVisit"]
        data["localCuisine"] = []
        del data["days"][0]["activities"][0]["weatherConsideration"]
        del data["days"][0]["meals"][0]["location"]
        del data["accommodation"][0]["suitableFor"]
        data["transportation"][0]["recommendedFor"] = ""

        fill_defaults(data)

        assert data["bestTimeToVisit"] == DEFAULT_BEST_TIME_TO_VISIT
        assert data["localCuisine"] == DEFAULT_LOCAL_CUISINE
        assert data["days"][0]["activities"][0]["weatherConsideration"] == DEFAULT_WEATHER_CONSIDERATION
        assert data["days"][0]["meals"][0]["location"] == DEFAULT_MEAL_LOCATION
        assert data["accommodation"][0]["suitableFor"] == DEFAULT_SUITABLE_FOR
        assert data["transportation"][0]["recommendedFor"] == DEFAULT_RECOMMENDED_FOR

    def test_existing_values_kept(self):
        data = sample_itinerary(days=1)
        fill_defaults(data)
        assert data["bestTimeToVisit"] == "April to June"
        assert data["days"][0]["meals"][1]["location"] == "Saint-Germain"

    def test_missing_day_lists_become_empty(self):
        data = sample_itinerary(days=1)
        data["days"] = [{"day": 1}]
        fill_defaults(data)
        assert data["days"][0]["activities"] == []
        assert data["days"][0]["meals"] == []


def test_normalize_runs_every_step():
    data = sample_itinerary(days=3, total=50000)
    data["days"] = [data["days"][1]]
    del data["bestTimeToVisit"]

    result = normalize_itinerary(data, duration=3, budget=60000)

    assert [d["day"] for d in result["days"]] == [1, 2, 3]
    assert result["budgetBreakdown"]["total"] == 60000
    assert result["bestTimeToVisit"] == DEFAULT_BEST_TIME_TO_VISIT


class TestCoerceFields:
    def test_null_text_and_unpriced_costs_repaired(self):
        data = sample_itinerary(days=1)
        data["accommodation"][0]["location"] = None
        data["accommodation"][0]["pricePerNight"] = "about 9000"
        data["transportation"][0]["cost"] = "Varies"
        data["days"][0]["activities"][0]["cost"] = "1500"

        coerce_fields(data)

        assert data["accommodation"][0]["location"] == ""
        assert data["accommodation"][0]["pricePerNight"] == 0
        assert data["transportation"][0]["cost"] == 0
        assert data["days"][0]["activities"][0]["cost"] == 1500.0

    def test_non_text_values(self):
        data = sample_itinerary(days=1)
        data["days"][0]["activities"][0]["name"] = 42
        data["days"][0]["meals"][0]["suggestion"] = {"dish": "Crepes"}
        data["transportation"][0]["type"] = None

        coerce_fields(data)

        assert data["days"][0]["activities"][0]["name"] == "42"
        assert data["days"][0]["meals"][0]["suggestion"] == ""
        assert data["transportation"][0]["type"] == ""

    def test_missing_required_names_become_empty(self):
        data = sample_itinerary(days=1)
        del data["accommodation"][0]["name"]
        coerce_fields(data)
        assert data["accommodation"][0]["name"] == ""

    def test_non_object_entries_dropped(self):
        data = sample_itinerary(days=1)
        data["days"][0]["activities"].append("Visit the Louvre")
        data["transportation"].append(None)

        coerce_fields(data)

        assert len(data["days"][0]["activities"]) == 1
        assert len(data["transportation"]) == 1

    def test_text_lists_cleaned(self):
        data = sample_itinerary(days=1)
        data["accommodation"][0]["amenities"] = ["WiFi", None, 24, ""]
        data["tips"] = ["Carry cash", {"tip": "nested"}, 3]
        data["localCuisine"] = "Croissant"

        coerce_fields(data)

        assert data["accommodation"][0]["amenities"] == ["WiFi", "24"]
        assert data["tips"] == ["Carry cash", "3"]
        assert data["localCuisine"] == []

    def test_non_finite_costs_zeroed(self):
        data = sample_itinerary(days=1)
        data["days"][0]["meals"][0]["cost"] = float("nan")
        coerce_fields(data)
        assert data["days"][0]["meals"][0]["cost"] == 0
