from datetime import datetime
from pydantic import BaseModel, field_validator
from typing import Optional, Any, List, Literal

from travel_planner.models.trip import TripMetadata


MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")


# ---------------------------
# Core Models
# ---------------------------

class Activity(BaseModel):
    name: str
    description: str = ""
    time: str = ""                               # "Morning" / "Afternoon" / "Evening" / "Flexible"
    cost: float = 0
    location: Optional[str] = None
    weatherConsideration: Optional[str] = None


class Meal(BaseModel):
    type: Literal["breakfast", "lunch", "dinner", "snack"]
    suggestion: str = ""
    cost: float = 0
    location: Optional[str] = None

    @field_validator('type', mode='before')
    @classmethod
    def lowercase_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class DayPlan(BaseModel):
    day: int
    activities: List[Activity] = []
    meals: List[Meal] = []


class AccommodationOption(BaseModel):
    name: str
    description: str = ""
    pricePerNight: float = 0
    location: str = ""
    amenities: List[str] = []
    suitableFor: Optional[str] = None


class TransportOption(BaseModel):
    type: str
    description: str = ""
    cost: float = 0
    recommendedFor: Optional[str] = None


class BudgetBreakdown(BaseModel):
    accommodation: float = 0
    food: float = 0
    activities: float = 0
    transportation: float = 0
    miscellaneous: float = 0
    total: float = 0

    def category_sum(self) -> float:
        return self.accommodation + self.food + self.activities + self.transportation + self.miscellaneous


class Itinerary(BaseModel):
    days: List[DayPlan]
    accommodation: List[AccommodationOption]
    transportation: List[TransportOption]
    budgetBreakdown: BudgetBreakdown
    tips: List[str]
    bestTimeToVisit: Optional[str] = None
    localCuisine: Optional[List[str]] = None


# ---------------------------
# Request/Response Models
# ---------------------------

class TripRecord(BaseModel):
    """A generated trip, ready to hand to whatever persists it"""
    id: str
    destination: str
    duration: int
    peopleCount: int
    budget: float
    currency: str
    itinerary: Itinerary
    createdAt: datetime
    userId: Optional[str] = None


class TravelPlanResponse(BaseModel):
    success: bool = True
    trip: TripRecord


class RenderPDFRequest(BaseModel):
    itinerary: Itinerary
    metadata: TripMetadata


class ErrorResponse(BaseModel):
    """Error response model"""
    success: bool = False
    error: str
    errorType: Optional[str] = None
    details: Optional[Any] = None
