class InvalidDestinationError(Exception):
    """The destination is not recognisable as a real place. Never retried."""

    user_message = "Invalid destination: Please enter a real city or country name."

    def __init__(self, message: str = user_message):
        super().__init__(message)


class GenerationError(Exception):
    """The model output could not be turned into a valid itinerary."""


class RenderError(Exception):
    """The itinerary PDF could not be produced."""
