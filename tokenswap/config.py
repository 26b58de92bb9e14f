from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Price Feed
    prices_url: str = Field(
        default="https://interview.switcheo.com/prices.json",
        description="Endpoint returning the JSON array of price observations",
    )
    request_timeout_seconds: float = Field(default=15.0, gt=0, description="Price feed request timeout")

    # Token Icons
    token_icon_base_url: str = Field(
        default="https://raw.githubusercontent.com/Switcheo/token-icons/main/tokens",
        description="Base URL that token icon references are built from",
    )
    token_icon_extension: str = Field(default="svg", description="File extension of token icons")

    # Simulated Settlement
    submit_latency_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Simulated settlement delay before a swap reports success",
    )
    success_display_seconds: float = Field(
        default=3.0,
        ge=0,
        description="How long the success state is shown before the form resets",
    )

    # Sessions
    session_ttl_seconds: float = Field(
        default=1800.0,
        gt=0,
        description="Idle time after which a swap session is discarded",
    )

    @property
    def icon_base(self) -> str:
        return self.token_icon_base_url.rstrip("/")

    def icon_ref_for(self, currency: str) -> str:
        """Build the icon reference for a currency. Never fetched here."""
        return f"{self.icon_base}/{currency}.{self.token_icon_extension}"


# Global settings instance
settings = Settings()
