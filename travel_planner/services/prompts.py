"""
Prompt text for itinerary generation.

The model is asked for a single JSON object; ``ITINERARY_SCHEMA_DOCS`` is the
shape the normalizer and the ``Itinerary`` model expect back.
"""

from travel_planner.models.trip import TripRequest


INVALID_DESTINATION_SENTINEL = "INVALID_DESTINATION:"

ITINERARY_SCHEMA_DOCS = """
{
  "days": [
    {
      "day": 1,
      "activities": [
        {
          "name": "Activity name",
          "description": "Detailed activity description including historical/cultural context",
          "time": "Morning/Afternoon/Evening",
          "cost": 0,
          "location": "Location name",
          "weatherConsideration": "Any weather considerations for this activity"
        }
      ],
      "meals": [
        {
          "type": "breakfast/lunch/dinner/snack",
          "suggestion": "Meal suggestion including cuisine type and specialties",
          "cost": 0,
          "location": "Restaurant or area name"
        }
      ]
    }
  ],
  "accommodation": [
    {
      "name": "Accommodation name",
      "description": "Detailed description including location benefits",
      "pricePerNight": 0,
      "location": "Area/neighborhood",
      "amenities": ["amenity1", "amenity2"],
      "suitableFor": "Families/Couples/Solo travelers/etc."
    }
  ],
  "transportation": [
    {
      "type": "Transportation type",
      "description": "Detailed description",
      "cost": 0,
      "recommendedFor": "Airport transfers/Getting around/Day trips/etc."
    }
  ],
  "budgetBreakdown": {
    "accommodation": 0,
    "food": 0,
    "activities": 0,
    "transportation": 0,
    "miscellaneous": 0,
    "total": 0
  },
  "tips": [
    "Practical tip about local customs",
    "Safety information",
    "Money-saving advice",
    "Best time to visit specific attractions"
  ],
  "bestTimeToVisit": "Information about seasons and weather",
  "localCuisine": [
    "Must-try local dish 1",
    "Must-try local dish 2"
  ]
}
"""


def _format_amount(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.2f}"


def build_itinerary_prompt(trip: TripRequest) -> str:
    """Create the full generation prompt for a trip request"""
    destination = trip.destination
    budget = _format_amount(trip.budget)
    currency = trip.currency

    prompt_parts = [
        "You are an expert travel planner with deep knowledge of destinations worldwide.",
        "",
        f'CRITICAL INSTRUCTION: If the destination "{destination}" is not a real, valid place '
        f"(city, region, or country), you MUST respond with exactly this text: "
        f'"{INVALID_DESTINATION_SENTINEL} The provided destination is not a valid travel location."',
        "",
        f'Only proceed if "{destination}" is a legitimate travel destination.',
        "",
        "Create a detailed travel itinerary for:",
        "",
        "# TRIP DETAILS",
        f"- Destination: {destination}",
        f"- Duration: {trip.duration} days",
        f"- Number of people: {trip.peopleCount}",
        f"- Budget: {budget} {currency}",
        "",
        "# INSTRUCTIONS",
        "- Create a day-by-day itinerary with morning, afternoon, and evening activities",
        f"- Include every day from 1 to {trip.duration}, one entry per day",
        "- Suggest local authentic experiences, not just tourist attractions",
        "- Include a mix of popular sites and hidden gems",
        f"- Recommend accommodations suitable for {trip.peopleCount} people",
        "- Include local and practical transportation options",
        "- Suggest meals that showcase local cuisine, including breakfast, lunch, dinner and snacks",
        f"- Keep all costs within the total budget of {budget} {currency}",
        "- Include local tips like etiquette, safety, best times to visit attractions, etc.",
        "- Consider weather patterns and seasonal events for the destination",
        "",
        "# SPECIAL REQUIREMENTS",
        "- If the destination has any major festivals or events during typical visit times, mention them",
        "- Include family-friendly activities if the group size suggests a family",
        "- Suggest sustainable tourism options where possible",
        "- Include contingency plans for bad weather days if applicable",
        "",
        "# RESPONSE FORMAT",
        "Your response MUST be valid JSON with the following structure:",
        ITINERARY_SCHEMA_DOCS.strip(),
        "",
        f"Provide exact costs in {currency} where possible. "
        "Ensure the sum of all costs matches the budget breakdown.",
        "Make your response comprehensive but focused on quality experiences "
        "rather than cramming too many activities.",
    ]

    return "\n".join(prompt_parts)
