import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from pydantic import ValidationError

from travel_planner.config import settings
from travel_planner.exceptions import GenerationError, InvalidDestinationError
from travel_planner.models.itinerary import Itinerary, TripRecord
from travel_planner.models.trip import TripRequest
from travel_planner.services.llm_service import LLMConfig, get_llm_service
from travel_planner.services.normalizer import normalize_itinerary
from travel_planner.services.prompts import build_itinerary_prompt
from travel_planner.services.response_parser import detect_invalid_destination, parse_itinerary_json

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


class AttemptStatus(Enum):
    SUCCEEDED = "succeeded"
    INVALID_DESTINATION = "invalid_destination"
    RETRYABLE = "retryable"


@dataclass
class AttemptOutcome:
    """Result of one generation attempt, classified for the retry loop"""
    status: AttemptStatus
    itinerary: Optional[Itinerary] = None
    error: Optional[str] = None


class ItineraryService:
    """Generates validated itineraries from trip requests using the LLM service"""

    def __init__(
        self,
        llm_service: Any = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        llm_config: Optional[LLMConfig] = None,
    ):
        self.llm_service = llm_service if llm_service is not None else get_llm_service()
        self.max_attempts = max_attempts if max_attempts is not None else settings.max_generation_attempts
        self.retry_delay = retry_delay if retry_delay is not None else settings.retry_delay_seconds
        self.sleep = sleep
        self.llm_config = llm_config or LLMConfig.from_settings()

    async def generate(self, trip: TripRequest) -> Itinerary:
        """
        Generate an itinerary for a trip request.

        Each attempt is classified before the loop decides what to do:
        an invalid destination stops immediately, anything else is retried
        with a linearly growing delay until ``max_attempts`` is exhausted.

        Raises:
            InvalidDestinationError: the model refused the destination
            GenerationError: every attempt failed
        """
        logger.info(f"Generating itinerary for {trip.destination}, {trip.duration} days, budget: {trip.budget} {trip.currency}")
        prompt = build_itinerary_prompt(trip)
        last_error = None

        for attempt in range(1, self.max_attempts + 1):
            logger.info(f"Attempt {attempt}/{self.max_attempts} to generate travel plan")
            outcome = await self._attempt(prompt, trip)

            if outcome.status is AttemptStatus.SUCCEEDED:
                logger.info("Itinerary generation completed successfully")
                return outcome.itinerary

            if outcome.status is AttemptStatus.INVALID_DESTINATION:
                logger.warning(f"Invalid destination detected for '{trip.destination}', not retrying")
                raise InvalidDestinationError()

            last_error = outcome.error
            logger.warning(f"Attempt {attempt}/{self.max_attempts} failed: {last_error}")

            if attempt < self.max_attempts:
                delay = self.retry_delay * attempt
                logger.info(f"Waiting {delay}s before next attempt...")
                await self.sleep(delay)

        logger.error(f"All {self.max_attempts} attempts failed: {last_error}")
        raise GenerationError(
            f"Failed to generate travel plan after {self.max_attempts} attempts. "
            f"{last_error or 'Please try again later.'}"
        )

    async def _attempt(self, prompt: str, trip: TripRequest) -> AttemptOutcome:
        response = await self.llm_service.generate_content(prompt, self.llm_config)
        if not response.success:
            return AttemptOutcome(AttemptStatus.RETRYABLE, error=response.error or "LLM call failed")

        if detect_invalid_destination(response.content):
            return AttemptOutcome(AttemptStatus.INVALID_DESTINATION, error=InvalidDestinationError.user_message)

        try:
            data = parse_itinerary_json(response.content)
            data = normalize_itinerary(data, duration=trip.duration, budget=trip.budget)
            itinerary = Itinerary.model_validate(data)
        except GenerationError as e:
            return AttemptOutcome(AttemptStatus.RETRYABLE, error=str(e))
        except ValidationError as e:
            logger.error(f"Normalized itinerary failed model validation: {e}")
            return AttemptOutcome(AttemptStatus.RETRYABLE, error=f"Invalid response: {e.error_count()} invalid fields")
        except Exception as e:
            logger.error(f"Unexpected error while processing LLM response: {e}", exc_info=True)
            return AttemptOutcome(AttemptStatus.RETRYABLE, error=f"Unexpected error processing response: {e}")

        return AttemptOutcome(AttemptStatus.SUCCEEDED, itinerary=itinerary)

    async def plan_trip(self, trip: TripRequest, user_id: Optional[str] = None) -> TripRecord:
        """Generate an itinerary and wrap it in a trip record for the caller to persist"""
        itinerary = await self.generate(trip)
        return TripRecord(
            id=f"trip_{uuid.uuid4().hex[:12]}",
            destination=trip.destination,
            duration=trip.duration,
            peopleCount=trip.peopleCount,
            budget=trip.budget,
            currency=trip.currency,
            itinerary=itinerary,
            createdAt=datetime.now(timezone.utc),
            userId=user_id,
        )


_itinerary_service_instance = None

def get_itinerary_service() -> ItineraryService:
    """Get singleton instance of ItineraryService"""
    global _itinerary_service_instance
    if _itinerary_service_instance is None:
        _itinerary_service_instance = ItineraryService()
    return _itinerary_service_instance
