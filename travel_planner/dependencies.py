import logging
from typing import Optional

from fastapi import Header, HTTPException

from travel_planner.services.itinerary_service import ItineraryService, get_itinerary_service
from travel_planner.services.pdf_service import ItineraryPDFRenderer, get_pdf_renderer

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


# ---------------------------
# FastAPI dependencies
# ---------------------------
def itinerary_service_dependency() -> ItineraryService:
    """
    Provide the shared ItineraryService. Tests override this to inject a
    scripted LLM service.

    Raises HTTPException(500) when the LLM client cannot be configured.
    """
    try:
        return get_itinerary_service()
    except RuntimeError as e:
        logger.error(f"Itinerary service unavailable: {e}")
        raise HTTPException(
            status_code=500,
            detail={"success": False, "error": "Travel planning service is not configured. Please try again later."}
        )


def pdf_renderer_dependency() -> ItineraryPDFRenderer:
    return get_pdf_renderer()


async def optional_user_id_dependency(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """
    Identity is resolved upstream; when a caller forwards one in ``X-User-Id``
    it is attached to the generated trip record.
    """
    if x_user_id is None:
        return None
    user_id = x_user_id.strip()
    return user_id or None
