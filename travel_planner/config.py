import os
from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import List, Optional
from dotenv import load_dotenv
load_dotenv()

class Settings(BaseSettings):
    # Application Settings
    app_name: str = "AI Travel Planner"
    default_currency: str = "INR"
    allowed_origins: List[str] = ["http://localhost:3000"]
    port: int = 8080

    # Gemini Configuration
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    llm_temperature: float = 0.7
    llm_top_p: float = 0.95
    llm_max_output_tokens: int = 8192

    # Vertex AI (used instead of the API key when enabled)
    use_vertex_ai: bool = False
    google_cloud_project: str = ""
    vertex_ai_location: str = "us-central1"

    # Generation retry policy
    max_generation_attempts: int = 3
    retry_delay_seconds: float = 1.0

    # PDF rendering
    pdf_page_size: str = "a4"
    pdf_orientation: str = "portrait"
    pdf_logo_path: Optional[str] = None

    # Pydantic V2 configuration (Python 3.13 compatible)
    model_config = ConfigDict(
        env_file=".env",
        extra="ignore"  # Allow extra environment variables without validation errors
    )

class CloudRunConfig:
    """Configuration for Cloud Run deployment"""

    # Environment Detection
    IS_CLOUD_RUN: bool = os.getenv("K_SERVICE") is not None

    PORT: int = int(os.getenv("PORT", "8080"))

settings = Settings()
cloud_config = CloudRunConfig()
