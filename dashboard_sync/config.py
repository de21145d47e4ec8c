import os
from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    api_base_url: str = Field("https://isipython-dev.onrender.com", alias="DASHBOARD_API_BASE_URL")
    request_timeout_seconds: float = Field(15.0, alias="DASHBOARD_REQUEST_TIMEOUT", gt=0)
    identity_timeout_seconds: float = Field(10.0, alias="DASHBOARD_IDENTITY_TIMEOUT", gt=0)
    user_agent: str = Field("isipython-dashboard-sync/0.1.0", alias="DASHBOARD_USER_AGENT")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        populate_by_name = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid dashboard sync configuration: {exc}") from exc
