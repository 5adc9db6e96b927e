"""Configuration for genagent using pydantic-settings."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.gateway import DEFAULT_API_BASE
from .utilities.log_helpers import basic_log_config


class GenAgentSettings(BaseSettings):
    """Settings shared by the gateway, the agent loop, and the runner.

    All settings can be overridden via environment variables with the GENAGENT_ prefix.
    For example, GENAGENT_API_KEY sets the Gemini API key.
    """

    # Gemini API
    api_key: SecretStr = SecretStr("")
    api_base: str = DEFAULT_API_BASE
    default_model: str = "gemini-2.5-flash-lite"
    request_timeout: float = Field(default=60, gt=0)

    # Agent execution
    max_iterations: int = Field(default=10, ge=1)
    max_attempts: int = Field(default=1, ge=1)

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="GENAGENT_")

    def configure_logging(self, **kwargs) -> None:
        """Apply ``log_level`` with the package's default log format."""
        basic_log_config(self.log_level, **kwargs)
