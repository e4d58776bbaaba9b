"""
Application configuration settings.
"""

from typing import Dict, List, Self

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.models.models import Category, DifficultyLevel


class DifficultyTierConfig(BaseModel):
    """Requested question count and preferred categories for one difficulty tier."""

    count: int = Field(..., ge=0)
    categories: List[str] = Field(default_factory=list)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Jargon Placement API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Security
    # Tokens are issued by the external auth service; this service only
    # verifies them.
    SECRET_KEY: str = Field(..., description="Application secret key (required)")
    JWT_SECRET_KEY: str = Field(..., description="JWT signing secret key (required)")
    JWT_ALGORITHM: str = "HS256"
    # Lifetime of tokens minted by create_access_token (tests, local tooling)
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    ADMIN_TOKEN: str = Field(
        default="",
        description="Admin API token checked on the X-Admin-Token header",
    )

    # Sentry Error Tracking
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking (leave empty to disable)",
    )
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry traces sample rate (0.0-1.0)",
    )

    # Placement test composition
    # Keys must match DifficultyLevel values, categories must match Category values
    PLACEMENT_DIFFICULTY_DISTRIBUTION: Dict[str, DifficultyTierConfig] = {
        "easy": DifficultyTierConfig(
            count=8, categories=["general", "programming", "web-development"]
        ),
        "medium": DifficultyTierConfig(
            count=10,
            categories=["programming", "database", "networking", "data-structures"],
        ),
        "hard": DifficultyTierConfig(
            count=7,
            categories=["algorithms", "security", "ai-ml", "software-engineering"],
        ),
    }
    PLACEMENT_MIN_TEST_LENGTH: int = Field(default=5, ge=1)

    # Level assignment cut points (inclusive lower bounds, percentage score)
    PLACEMENT_LEVEL_THRESHOLDS: Dict[str, int] = {
        "advanced": 80,
        "intermediate": 60,
    }
    PLACEMENT_STRENGTH_THRESHOLD: int = Field(default=75, ge=0, le=100)
    PLACEMENT_IMPROVEMENT_THRESHOLD: int = Field(default=50, ge=0, le=100)
    # Beginner scores at or above this floor get the "room to grow" summary
    PLACEMENT_DEVELOPING_BAND_FLOOR: int = Field(default=40, ge=0, le=100)

    # A user whose cached placement is complete must be granted a retake by
    # an administrator before starting another test
    PLACEMENT_REQUIRE_RETAKE_APPROVAL: bool = True

    # Submissions later than the summed time allocation plus this grace are
    # accepted but flag the session
    PLACEMENT_TIME_LIMIT_GRACE_SECONDS: int = Field(default=60, ge=0)

    # Admin analytics histogram bucket width
    PLACEMENT_SCORE_BUCKET_SIZE: int = Field(default=20, ge=1, le=100)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_placement_policy(self) -> Self:
        """Reject inconsistent placement policy at startup."""
        advanced = self.PLACEMENT_LEVEL_THRESHOLDS.get("advanced")
        intermediate = self.PLACEMENT_LEVEL_THRESHOLDS.get("intermediate")
        if advanced is None or intermediate is None:
            raise ValueError(
                "PLACEMENT_LEVEL_THRESHOLDS must define 'advanced' and 'intermediate'."
            )
        if not 0 <= intermediate < advanced <= 100:
            raise ValueError(
                "PLACEMENT_LEVEL_THRESHOLDS must satisfy "
                "0 <= intermediate < advanced <= 100."
            )
        if self.PLACEMENT_DEVELOPING_BAND_FLOOR >= intermediate:
            raise ValueError(
                "PLACEMENT_DEVELOPING_BAND_FLOOR must be below the intermediate "
                "threshold."
            )
        if self.PLACEMENT_IMPROVEMENT_THRESHOLD > self.PLACEMENT_STRENGTH_THRESHOLD:
            raise ValueError(
                "PLACEMENT_IMPROVEMENT_THRESHOLD cannot exceed "
                "PLACEMENT_STRENGTH_THRESHOLD."
            )

        valid_difficulties = {d.value for d in DifficultyLevel}
        valid_categories = {c.value for c in Category}
        for tier, tier_config in self.PLACEMENT_DIFFICULTY_DISTRIBUTION.items():
            if tier not in valid_difficulties:
                raise ValueError(f"Unknown difficulty tier in distribution: {tier}")
            unknown = set(tier_config.categories) - valid_categories
            if unknown:
                raise ValueError(
                    f"Unknown categories for tier {tier}: {sorted(unknown)}"
                )
        return self


settings = Settings()
