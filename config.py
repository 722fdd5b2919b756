from typing import Optional

from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    bot_token: str = Field("", validation_alias=AliasChoices("BOT_TOKEN", "bot_token"))  # bot only, the CLI does not need it
    api_base: str = Field("http://localhost:8080", validation_alias=AliasChoices("API_BASE", "NEXT_PUBLIC_API_URL", "api_base"))
    max_upload_bytes: int = Field(10 * 1024 * 1024, validation_alias=AliasChoices("MAX_UPLOAD_BYTES", "max_upload_bytes"))
    request_timeout: Optional[float] = Field(None, validation_alias=AliasChoices("REQUEST_TIMEOUT", "request_timeout"))  # None: ExtractionClient omits the timeout kwarg, so httpx applies its own default
    copy_indicator_seconds: float = Field(2.0, validation_alias=AliasChoices("COPY_INDICATOR_SECONDS", "copy_indicator_seconds"))
    max_display_colors: int = Field(12, validation_alias=AliasChoices("MAX_DISPLAY_COLORS", "max_display_colors"))
    log_level: str = Field("INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
