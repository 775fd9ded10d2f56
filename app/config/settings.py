from typing import Optional
from urllib.parse import quote_plus

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = Field(default=SecretStr("postgres"))
    database: str = "langospark"
    dsn: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy URL; overrides the host/port/credential fields.",
    )
    serverless: bool = Field(
        default=True,
        description="If true, disable connection pooling so serverless DBs can pause.",
    )

    @property
    def url(self) -> str:
        """Get database URL"""
        if self.dsn:
            return self.dsn
        username = quote_plus(self.username)
        password = quote_plus(self.password.get_secret_value())
        return (
            "postgresql+asyncpg://"
            f"{username}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class BedrockConfig(BaseSettings):
    """Amazon Bedrock configuration."""

    region: str = Field(
        default="us-east-1",
        validation_alias="BEDROCK_REGION",
    )
    model_id: str = Field(
        default="anthropic.claude-3-sonnet-20240229-v1:0",
        validation_alias="BEDROCK_MODEL_ID",
    )
    max_tokens: int = Field(
        default=1000,
        validation_alias="BEDROCK_MAX_TOKENS",
        ge=1,
        le=4096,
    )
    temperature: float = Field(
        default=0.7,
        validation_alias="BEDROCK_TEMPERATURE",
        ge=0.0,
        le=1.0,
    )
    top_p: float = Field(
        default=0.9,
        validation_alias="BEDROCK_TOP_P",
        ge=0.0,
        le=1.0,
    )
    timeout_seconds: float = Field(
        default=60.0,
        validation_alias="BEDROCK_TIMEOUT_SECONDS",
        gt=0.0,
    )
    api_key: SecretStr | None = Field(
        default=None,
        validation_alias="BEDROCK_API_KEY",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class GenerationConfig(BaseSettings):
    """Token budgets and degradation knobs for AI content generation."""

    lesson_max_tokens: int = Field(default=1000, ge=1, le=4096)
    quiz_max_tokens: int = Field(default=1000, ge=1, le=4096)
    conversation_max_tokens: int = Field(default=1000, ge=1, le=4096)
    reply_max_tokens: int = Field(default=500, ge=1, le=4096)
    feedback_max_tokens: int = Field(default=1000, ge=1, le=4096)
    default_quiz_questions: int = Field(default=5, ge=1, le=20)

    # Placeholder accuracy reported when the model output cannot be used.
    fallback_accuracy: float = Field(default=0.7, ge=0.0, le=1.0)
    fallback_accuracy_min: float = Field(default=0.5, ge=0.0, le=1.0)
    fallback_accuracy_max: float = Field(default=0.7, ge=0.0, le=1.0)

    max_audio_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1,
        description="Largest accepted base64 audio payload, in characters.",
    )

    @model_validator(mode="after")
    def check_fallback_band(self) -> "GenerationConfig":
        if self.fallback_accuracy_min > self.fallback_accuracy_max:
            raise ValueError("fallback_accuracy_min must not exceed fallback_accuracy_max")
        if not self.fallback_accuracy_min <= self.fallback_accuracy <= self.fallback_accuracy_max:
            raise ValueError("fallback_accuracy must lie inside the configured band")
        return self

    model_config = SettingsConfigDict(
        env_prefix="GENERATION_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class SecurityConfig(BaseSettings):
    """JWT and application security configuration."""

    jwt_secret_key: SecretStr = Field(
        default=SecretStr("change-me"),
        validation_alias="JWT_SECRET",
    )
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    access_token_expires_minutes: int = Field(
        default=60 * 24,
        validation_alias="JWT_EXPIRATION_MINUTES",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "LangoSpark Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000
    log_file: str = "logs/app.log"
    generation_log_file: str = "logs/generation.log"
    persist_request_logs: bool = False

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # Bedrock
    bedrock: BedrockConfig = Field(default_factory=BedrockConfig)

    # Generation pipeline
    generation: GenerationConfig = Field(default_factory=GenerationConfig)

    # Security
    security: SecurityConfig = Field(default_factory=SecurityConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
