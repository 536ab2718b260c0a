"""Engine settings loaded from the environment."""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Tunable parameters for detection, supplements and text generation."""

    # Gemini API Configuration
    gemini_api_key: str = Field(default="", description="Gemini API key")
    gemini_model: str = Field(default="gemini-2.5-flash", description="Gemini model name")
    argument_temperature: float = 0.7
    script_temperature: float = 0.8
    extraction_temperature: float = 0.1

    # Scope comparison
    price_variance_threshold: Decimal = Field(
        default=Decimal("50"),
        description="Minimum total-price difference reported as under/overpaid",
    )
    max_underpaid_arguments: int = Field(
        default=5,
        description="Underpaid items (largest difference first) that get an argument",
    )

    # Batch Processing Configuration
    argument_batch_size: int = Field(default=5, ge=1)
    argument_batch_delay_seconds: float = Field(default=1.0, ge=0)

    # Supplement totals
    tax_rate: Decimal = Field(default=Decimal("0.089"), description="Default AZ sales tax")

    # Carrier detection
    detection_short_circuit: float = Field(default=0.7, ge=0, le=1)

    # Redact personal identifiers from text sent to external services
    redact_outbound_text: bool = True

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SCOPE_ENGINE_",
        env_file=str(Path.cwd() / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> EngineSettings:
    """Return the process-wide settings instance."""
    return EngineSettings()
