from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./rides.db"
    echo_sql: bool = False
    log_level: str = "INFO"
    # Packets without a crank group: store crank columns as 0.0 instead of NULL
    missing_crank_as_zero: bool = False
    sample_ride_id: int = 777

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
