"""Settings for the practice client."""

from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Practice client configuration"""

    api_base_url: str = "http://localhost:3000"
    token: Optional[SecretStr] = None
    request_timeout_seconds: float = Field(default=60.0, gt=0.0)

    sample_rate: int = Field(default=16_000, ge=8_000)
    channels: int = Field(default=1, ge=1, le=2)
    max_recording_seconds: float = Field(default=15.0, gt=0.0)
    max_encoded_bytes: int = Field(default=10 * 1024 * 1024, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="LANGOSPARK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )
