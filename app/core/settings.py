"""
Core settings and environment variables for CivicEye.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "CivicEye"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API
    CORS_ORIGINS: str = "http://localhost:5000,http://localhost:5173,http://127.0.0.1:5173"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON

    # In-memory store for local development without Firebase credentials
    USE_MOCK_DB: bool = False

    # Candidate search radii (km). Submission uses a tight window,
    # map browsing a wide one.
    SUBMISSION_SEARCH_RADIUS_KM: float = 0.5
    NEARBY_SEARCH_RADIUS_KM: float = 5.0
    MAX_RANKING_CANDIDATES: int = 50

    # Similarity ranking
    SIMILARITY_THRESHOLD: float = 0.5
    MAX_SIMILAR_RESULTS: int = 10
    SIMILARITY_PROVIDER: str = "heuristic"  # "heuristic" or "gemini"

    # AI Configuration (model-backed ranking is optional)
    AI_ENABLED: bool = True
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    AI_TIMEOUT_SECONDS: float = 10.0

    # Gamification
    REPORT_POINTS: int = 10
    UPVOTE_POINTS: int = 2
    VALIDATION_POINTS: int = 5

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


# Global settings instance
settings = Settings()
