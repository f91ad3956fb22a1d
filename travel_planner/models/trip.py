import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from travel_planner.config import settings


# Inputs people type into the destination box when they are not naming a place
INVALID_DESTINATIONS = frozenset({
    "test", "hi", "hello", "asdf", "123", "none", "n/a", "na", "null", "undefined",
    "xyz", "abc", "foo", "bar", "baz", "qwerty", "example", "ok", "yes", "no",
    "random", "place", "city", "country", "destination", "location", "somewhere",
})

DESTINATION_PATTERN = re.compile(r"^[A-Za-z\s\-',.]+$")


def destination_problem(destination: Optional[str]) -> Optional[str]:
    """
    Run the destination sanity heuristics.

    Returns a user-facing reason when the value cannot be a real place,
    otherwise None. Shared by request validation and the PDF renderer.
    """
    value = (destination or "").strip()
    if len(value) < 2:
        return "Destination must be at least 2 characters"
    if value.isdigit():
        return "Destination cannot be a number"
    if value.lower() in INVALID_DESTINATIONS:
        return "Please enter a valid destination (city or country name)"
    return None


class TripRequest(BaseModel):
    """Trip parameters submitted by the user"""
    model_config = ConfigDict(frozen=True)

    destination: str = Field(..., min_length=2, max_length=100, description="Travel destination")
    duration: int = Field(..., ge=1, le=30, description="Number of days (1-30)")
    peopleCount: int = Field(..., ge=1, le=20, description="Number of people (1-20)")
    budget: float = Field(..., ge=100, description="Total budget in the trip currency")
    currency: str = Field(default_factory=lambda: settings.default_currency, description="ISO currency code")

    @field_validator('destination')
    @classmethod
    def validate_destination(cls, v):
        problem = destination_problem(v)
        if problem:
            raise ValueError(problem)
        if not DESTINATION_PATTERN.match(v):
            raise ValueError(
                "Destination should only contain letters, spaces, hyphens, apostrophes, commas and periods"
            )
        return v

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v):
        return (v or settings.default_currency).strip().upper()


class TripMetadata(BaseModel):
    """Trip facts printed alongside an itinerary in the PDF"""
    destination: str
    duration: int = Field(..., ge=1)
    peopleCount: int = Field(..., ge=1)
    budget: float
    currency: str = "INR"
    generatedAt: datetime = Field(default_factory=datetime.now)
    ownerName: Optional[str] = None

    @classmethod
    def from_trip_request(cls, trip: TripRequest, owner_name: Optional[str] = None) -> "TripMetadata":
        return cls(
            destination=trip.destination,
            duration=trip.duration,
            peopleCount=trip.peopleCount,
            budget=trip.budget,
            currency=trip.currency,
            ownerName=owner_name,
        )
