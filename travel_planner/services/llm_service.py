import logging
from typing import Any, List, Optional
from dataclasses import dataclass

from google import genai
from google.genai import types

from travel_planner.config import settings

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


@dataclass
class LLMConfig:
    """Configuration for LLM calls"""
    model: str = "gemini-2.0-flash"
    temperature: float = 0.7
    top_p: float = 0.95
    max_output_tokens: int = 8192
    safety_settings_off: bool = False

    @classmethod
    def from_settings(cls) -> "LLMConfig":
        return cls(
            model=settings.gemini_model,
            temperature=settings.llm_temperature,
            top_p=settings.llm_top_p,
            max_output_tokens=settings.llm_max_output_tokens,
        )


@dataclass
class LLMResponse:
    """Standardized LLM response"""
    success: bool
    content: str
    raw_response: Any = None
    error: Optional[str] = None


class GeminiLLMService:
    """Thin async wrapper around the Gemini text generation API"""

    def __init__(self, client: Optional[genai.Client] = None):
        if client is not None:
            self.client = client
            return

        try:
            if settings.use_vertex_ai:
                if not settings.google_cloud_project:
                    raise RuntimeError("GOOGLE_CLOUD_PROJECT is required when USE_VERTEX_AI is enabled")
                self.client = genai.Client(
                    vertexai=True,
                    project=settings.google_cloud_project,
                    location=settings.vertex_ai_location
                )
                logger.info(f"Initialized Vertex AI client for project: {settings.google_cloud_project}")
            else:
                if not settings.gemini_api_key:
                    raise RuntimeError("GEMINI_API_KEY environment variable is required")
                self.client = genai.Client(api_key=settings.gemini_api_key)
                logger.info("Initialized Gemini client with API key")
        except RuntimeError:
            raise
        except Exception as e:
            logger.error(f"Failed to initialize Gemini client: {e}")
            raise RuntimeError(f"Gemini client initialization failed: {e}")

    def _create_safety_settings(self, safety_off: bool) -> List[types.SafetySetting]:
        """Create safety settings configuration"""
        if not safety_off:
            return []  # Use default safety settings

        return [
            types.SafetySetting(category=category, threshold="OFF")
            for category in (
                "HARM_CATEGORY_HATE_SPEECH",
                "HARM_CATEGORY_DANGEROUS_CONTENT",
                "HARM_CATEGORY_SEXUALLY_EXPLICIT",
                "HARM_CATEGORY_HARASSMENT",
            )
        ]

    def _create_contents(self, prompt: str) -> List[types.Content]:
        return [
            types.Content(
                role="user",
                parts=[types.Part(text=prompt)]
            )
        ]

    async def generate_content(self, prompt: str, config: Optional[LLMConfig] = None) -> LLMResponse:
        """
        Send a single prompt to the model.

        Transport and API failures are reported through ``LLMResponse.error``
        rather than raised, so callers can decide whether to retry.
        """
        if config is None:
            config = LLMConfig.from_settings()

        try:
            logger.info(f"Making LLM call with model: {config.model}")

            generate_content_config = types.GenerateContentConfig(
                temperature=config.temperature,
                top_p=config.top_p,
                max_output_tokens=config.max_output_tokens,
                safety_settings=self._create_safety_settings(config.safety_settings_off)
            )

            response = await self.client.aio.models.generate_content(
                model=config.model,
                contents=self._create_contents(prompt),
                config=generate_content_config
            )

            content = response.text or ""
            logger.info(f"LLM call successful, response length: {len(content)}")

            return LLMResponse(success=True, content=content, raw_response=response)

        except Exception as e:
            logger.error(f"LLM call failed: {e}")
            return LLMResponse(success=False, content="", error=str(e))


# Singleton instance
_llm_service_instance = None

def get_llm_service() -> GeminiLLMService:
    """Get singleton instance of LLM service"""
    global _llm_service_instance
    if _llm_service_instance is None:
        _llm_service_instance = GeminiLLMService()
    return _llm_service_instance
