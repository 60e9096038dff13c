from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ENV_FILE_PATH = Path(".env")


class Settings(BaseModel):
    env: str = Field(default="dev", alias="ENV")
    timezone: str = Field(default="America/Sao_Paulo", alias="TIMEZONE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    postgres_db: str = Field(default="classbook", alias="POSTGRES_DB")
    postgres_user: str = Field(default="classbook", alias="POSTGRES_USER")
    postgres_password: str = Field(default="classbook", alias="POSTGRES_PASSWORD")
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")

    jwt_secret: str = Field(default="secret", alias="JWT_SECRET")
    jwt_expire_min: int = Field(default=43200, alias="JWT_EXPIRE_MIN")

    default_admin_email: str = Field(default="admin@classbook.local", alias="DEFAULT_ADMIN_EMAIL")
    default_admin_password: str = Field(default="admin123", alias="DEFAULT_ADMIN_PASSWORD")
    box_name: str = Field(default="Meu Box CrossFit", alias="BOX_NAME")

    booking_window_enforced: bool = Field(default=True, alias="BOOKING_WINDOW_ENFORCED")

    sweeper_enabled: bool = Field(default=True, alias="SWEEPER_ENABLED")
    no_show_sweep_interval_min: int = Field(default=15, alias="NO_SHOW_SWEEP_INTERVAL_MIN")
    no_show_sweep_batch_size: int = Field(default=500, alias="NO_SHOW_SWEEP_BATCH_SIZE")

    class Config:
        populate_by_name = True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv(dotenv_path=ENV_FILE_PATH, override=False)
    return Settings(**os.environ)
