from fastapi import APIRouter, Depends, HTTPException, status, Response
from fastapi.responses import JSONResponse
from typing import Optional
import logging
from datetime import datetime

from travel_planner.dependencies import (
    itinerary_service_dependency,
    optional_user_id_dependency,
    pdf_renderer_dependency,
)
from travel_planner.exceptions import GenerationError, InvalidDestinationError, RenderError
from travel_planner.models.itinerary import ErrorResponse, RenderPDFRequest, TravelPlanResponse
from travel_planner.models.trip import TripRequest
from travel_planner.services.itinerary_service import ItineraryService
from travel_planner.services.pdf_service import ItineraryPDFRenderer, suggested_filename

logger = logging.getLogger(__name__)
router = APIRouter(tags=["trip"])


def _error(status_code: int, message: str, error_type: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=message, errorType=error_type)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.post("/travel-plan", response_model=TravelPlanResponse, status_code=status.HTTP_201_CREATED, responses={
    400: {"model": ErrorResponse, "description": "Bad Request"},
    500: {"model": ErrorResponse, "description": "Internal Server Error"}
})
async def create_travel_plan(
    request: TripRequest,
    service: ItineraryService = Depends(itinerary_service_dependency),
    user_id: Optional[str] = Depends(optional_user_id_dependency)
):
    """
    Generate an AI travel itinerary for a trip request.

    The returned trip record is not stored; persisting it is up to the caller.
    """
    start_time = datetime.now()

    try:
        logger.info(f"Planning trip to {request.destination} for {request.duration} days, budget: {request.budget}")
        trip = await service.plan_trip(request, user_id=user_id)

        processing_time = (datetime.now() - start_time).total_seconds()
        logger.info(f"Trip planning completed successfully in {processing_time:.2f}s")

        return TravelPlanResponse(success=True, trip=trip)

    except InvalidDestinationError as e:
        logger.warning(f"Invalid destination in trip planning: {e}")
        return _error(status.HTTP_400_BAD_REQUEST, str(e), error_type="INVALID_DESTINATION")
    except GenerationError as e:
        logger.error(f"Generation error in trip planning: {e}")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to generate travel plan. Please try again later."
        )
    except Exception as e:
        logger.error(f"Unexpected error in trip planning: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"success": False, "error": "Internal server error"}
        )


@router.post("/trips/pdf", responses={
    200: {"content": {"application/pdf": {}}, "description": "Rendered itinerary"},
    400: {"model": ErrorResponse, "description": "Bad Request"}
})
def download_itinerary_pdf(
    request: RenderPDFRequest,
    renderer: ItineraryPDFRenderer = Depends(pdf_renderer_dependency)
):
    """Render an itinerary and its trip details as a downloadable PDF"""
    try:
        content = renderer.render(request.itinerary, request.metadata)
    except RenderError as e:
        logger.error(f"PDF rendering failed for {request.metadata.destination}: {e}")
        return _error(status.HTTP_400_BAD_REQUEST, str(e))

    filename = suggested_filename(request.metadata)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
