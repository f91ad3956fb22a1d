"""
Repair of plausible-but-incomplete model output.

A response that parses but skips a day, disagrees with itself on money or
leaves optional fields out is the normal case, not an error. Each step below
mutates the parsed dict in place and can be exercised on its own;
``normalize_itinerary`` runs them in order.
"""

import logging
import math
from typing import Any, Dict, List, Optional

from travel_planner.exceptions import GenerationError

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


BUDGET_CATEGORIES = ("accommodation", "food", "activities", "transportation", "miscellaneous")

# Max disagreement between the category sum and the reported total
SUM_TOLERANCE = 10
# Totals within this fraction of the requested budget are left alone
BUDGET_TOLERANCE_RATIO = 0.05

DEFAULT_BEST_TIME_TO_VISIT = "Information not available. Check local weather forecasts before your trip."
DEFAULT_LOCAL_CUISINE = ["Local cuisine - explore restaurants and food stalls for authentic experiences"]
DEFAULT_WEATHER_CONSIDERATION = "No specific weather considerations"
DEFAULT_MEAL_LOCATION = "Local area"
DEFAULT_SUITABLE_FOR = "All travelers"
DEFAULT_RECOMMENDED_FOR = "General transportation"


def validate_structure(data: Dict[str, Any]) -> None:
    """Reject responses missing a required top-level field"""
    for field in ("days", "accommodation", "transportation"):
        if not isinstance(data.get(field), list):
            raise GenerationError(f"Invalid response: missing {field} array")

    if not isinstance(data.get("budgetBreakdown"), dict):
        raise GenerationError("Invalid response: missing budget breakdown")

    if not isinstance(data.get("tips"), list):
        raise GenerationError("Invalid response: missing tips array")


def placeholder_day(day: int) -> Dict[str, Any]:
    return {
        "day": day,
        "activities": [
            {
                "name": "Free time to explore",
                "description": "Time to explore the area at your own pace or rest.",
                "time": "Flexible",
                "cost": 0,
                "location": "Various",
            }
        ],
        "meals": [
            {"type": "breakfast", "suggestion": "Breakfast at accommodation or nearby cafe", "cost": 500},
            {"type": "lunch", "suggestion": "Local cuisine at a restaurant of your choice", "cost": 700},
            {"type": "dinner", "suggestion": "Dinner at a local restaurant", "cost": 900},
        ],
    }


def _day_index(entry: Any) -> Optional[int]:
    if not isinstance(entry, dict):
        return None
    value = entry.get("day")
    if isinstance(value, bool):
        return None
    try:
        index = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    # 2.5 is not a day
    if isinstance(value, float) and not value.is_integer():
        return None
    return index


def fill_missing_days(data: Dict[str, Any], duration: int) -> None:
    """Ensure days 1..duration each appear exactly once, in order"""
    by_index: Dict[int, Dict[str, Any]] = {}
    for entry in data["days"]:
        index = _day_index(entry)
        if index is None or index < 1 or index > duration:
            logger.warning(f"Dropping day entry with index {index} outside 1..{duration}")
            continue
        if index in by_index:
            logger.warning(f"Dropping duplicate entry for day {index}")
            continue
        entry["day"] = index
        by_index[index] = entry

    missing = [i for i in range(1, duration + 1) if i not in by_index]
    if missing:
        logger.info(f"Adding placeholder days: {missing}")
    for index in missing:
        by_index[index] = placeholder_day(index)

    data["days"] = [by_index[i] for i in sorted(by_index)]


def _as_number(value: Any) -> float:
    """Coerce a model-supplied amount to a finite number, 0 when there is none"""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    # json.loads accepts NaN and Infinity
    return number if math.isfinite(number) else 0


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def reconcile_sum(breakdown: Dict[str, Any]) -> None:
    """Trust the categories over the reported total when they disagree"""
    for category in BUDGET_CATEGORIES:
        breakdown[category] = _as_number(breakdown.get(category))
    total = _as_number(breakdown.get("total"))

    calculated = sum(breakdown[c] for c in BUDGET_CATEGORIES)
    if abs(calculated - total) > SUM_TOLERANCE:
        logger.info(f"Budget total {total} disagrees with category sum {calculated}, using the sum")
        total = calculated
    breakdown["total"] = total


def rescale_to_budget(breakdown: Dict[str, Any], budget: float) -> None:
    """
    Scale the categories onto the requested budget when the total is off by more than 5%.

    Totals inside the tolerance are deliberately left as the model reported them.
    """
    total = breakdown["total"]
    if abs(total - budget) <= budget * BUDGET_TOLERANCE_RATIO:
        return

    logger.info(f"Rescaling budget breakdown from {total} to requested budget {budget}")
    if total <= 0:
        for category in BUDGET_CATEGORIES:
            breakdown[category] = 0
        breakdown["miscellaneous"] = budget
    else:
        ratio = budget / total
        for category in BUDGET_CATEGORIES:
            breakdown[category] = round(breakdown[category] * ratio)
    breakdown["total"] = budget


def _ensure_list(container: Dict[str, Any], key: str) -> List[Any]:
    if not isinstance(container.get(key), list):
        container[key] = []
    return container[key]


ACTIVITY_FIELDS = (("name", "description", "time", "location", "weatherConsideration"), ("cost",))
MEAL_FIELDS = (("suggestion", "location"), ("cost",))
ACCOMMODATION_FIELDS = (("name", "description", "location", "suitableFor"), ("pricePerNight",))
TRANSPORT_FIELDS = (("type", "description", "recommendedFor"), ("cost",))


def _coerce_entries(entries: List[Any], fields) -> List[Dict[str, Any]]:
    text_fields, number_fields = fields
    kept = [entry for entry in entries if isinstance(entry, dict)]
    if len(kept) != len(entries):
        logger.warning(f"Dropping {len(entries) - len(kept)} entries that are not objects")
    for entry in kept:
        for field in text_fields:
            entry[field] = _as_text(entry.get(field))
        for field in number_fields:
            entry[field] = _as_number(entry.get(field))
    return kept


def _text_list(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    return [_as_text(v) for v in values if _as_text(v)]


def coerce_fields(data: Dict[str, Any]) -> None:
    """
    Bring loosely typed entries into the shape the models expect.

    Missing or null text becomes "", amounts like "Varies" become 0 and
    entries that are not objects are dropped.
    """
    for day in data["days"]:
        day["activities"] = _coerce_entries(_ensure_list(day, "activities"), ACTIVITY_FIELDS)
        day["meals"] = _coerce_entries(_ensure_list(day, "meals"), MEAL_FIELDS)

    data["accommodation"] = _coerce_entries(data["accommodation"], ACCOMMODATION_FIELDS)
    for accommodation in data["accommodation"]:
        accommodation["amenities"] = _text_list(accommodation.get("amenities"))

    data["transportation"] = _coerce_entries(data["transportation"], TRANSPORT_FIELDS)
    data["tips"] = _text_list(data["tips"])
    if "localCuisine" in data:
        data["localCuisine"] = _text_list(data["localCuisine"])


def fill_defaults(data: Dict[str, Any]) -> None:
    """Populate optional fields the model left out"""
    if not data.get("bestTimeToVisit"):
        data["bestTimeToVisit"] = DEFAULT_BEST_TIME_TO_VISIT

    cuisine = data.get("localCuisine")
    if not isinstance(cuisine, list) or len(cuisine) == 0:
        data["localCuisine"] = list(DEFAULT_LOCAL_CUISINE)

    for day in data["days"]:
        for activity in _ensure_list(day, "activities"):
            if isinstance(activity, dict) and not activity.get("weatherConsideration"):
                activity["weatherConsideration"] = DEFAULT_WEATHER_CONSIDERATION
        for meal in _ensure_list(day, "meals"):
            if isinstance(meal, dict) and not meal.get("location"):
                meal["location"] = DEFAULT_MEAL_LOCATION

    for accommodation in data["accommodation"]:
        if isinstance(accommodation, dict) and not accommodation.get("suitableFor"):
            accommodation["suitableFor"] = DEFAULT_SUITABLE_FOR

    for transport in data["transportation"]:
        if isinstance(transport, dict) and not transport.get("recommendedFor"):
            transport["recommendedFor"] = DEFAULT_RECOMMENDED_FOR


def normalize_itinerary(data: Dict[str, Any], duration: int, budget: float) -> Dict[str, Any]:
    """Validate and repair a parsed response for a trip of ``duration`` days and ``budget``"""
    validate_structure(data)
    fill_missing_days(data, duration)
    reconcile_sum(data["budgetBreakdown"])
    rescale_to_budget(data["budgetBreakdown"], budget)
    coerce_fields(data)
    fill_defaults(data)
    return data
