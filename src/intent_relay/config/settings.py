"""Application settings using Pydantic Settings."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ModelRole = Literal["classifier", "generator"]


class BackendConfig(BaseModel):
    """Explicit configuration handed to a generation backend.

    Backends never read global settings; everything they need is passed in here.
    """

    model_config = ConfigDict(frozen=True)

    provider: str = "gemini"
    model: str = "flash"
    api_key: str | None = None
    base_url: str | None = None
    timeout_seconds: float = 0.0


class Settings(BaseSettings):
    """Application configuration settings.

    Settings can be configured via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=12060, description="API server port")

    # Backend
    backend_provider: Literal["gemini", "claude_cli"] = Field(
        default="gemini", description="Generation backend provider"
    )
    classifier_model: str = Field(
        default="flash", description="Model used for intent classification"
    )
    generator_model: str = Field(
        default="flash", description="Model used for text and object generation"
    )
    google_api_key: str | None = Field(
        default=None, description="API key for the Gemini provider"
    )
    gemini_base_url: str | None = Field(
        default=None, description="Override for the Generative Language API base URL"
    )
    backend_timeout_seconds: float = Field(
        default=0.0, ge=0, description="Timeout for a single backend call. 0 means provider default."
    )

    # Pipeline
    classifier_retries: int = Field(
        default=1, ge=0, le=1, description="Retries when the classifier answers outside the label set"
    )
    request_timeout_seconds: float = Field(
        default=30.0, gt=0, le=300, description="Upper bound for a single request"
    )

    # Tools
    enable_tools: bool = Field(
        default=True, description="Let streamed text call the built-in tools"
    )
    max_tool_steps: int = Field(
        default=5, ge=1, le=10, description="Model turns allowed in one tool-calling stream"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )

    def backend_config(self, role: ModelRole = "generator") -> BackendConfig:
        """Build the backend configuration for a model role."""
        model = self.classifier_model if role == "classifier" else self.generator_model
        return BackendConfig(
            provider=self.backend_provider,
            model=model,
            api_key=self.google_api_key,
            base_url=self.gemini_base_url,
            timeout_seconds=self.backend_timeout_seconds,
        )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Creates a new instance on first call, then returns the cached instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance.

    Useful for testing or when settings need to be reloaded.
    """
    global _settings
    _settings = None
