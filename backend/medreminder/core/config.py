import os
import logging
import pytz
from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List, Optional

logger = logging.getLogger(__name__)


ENV_PRODUCTION = os.getenv("ENVIRONMENT", "development").lower() == "production"


class Settings(BaseSettings):

    environment: str = "development"
    server_host: str = "0.0.0.0"
    port: int = 3333
    log_level: Optional[str] = None


    mongodb_uri: str = "mongodb://localhost:27017"
    db_name: str = "medreminder"


    timezone: str = "UTC"


    cors_origins: str = "http://localhost:3000"

    @property
    def cors_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def tzinfo(self):
        return pytz.timezone(self.timezone)

    @property
    def resolved_log_level(self) -> str:
        if self.log_level:
            return self.log_level.upper()
        return "INFO" if self.environment == "production" else "DEBUG"

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            pytz.timezone(v)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f'Unknown timezone: {v}')
        return v

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._validate_production_settings()

    def _validate_production_settings(self):
        if ENV_PRODUCTION:
            if self.mongodb_uri.startswith("mongodb://localhost"):
                logger.warning(
                    "MONGODB_URI points at localhost in production. "
                    "Set MONGODB_URI to the production database."
                )
            if "*" in self.cors_list:
                logger.warning("CORS_ORIGINS allows every origin in production.")

    class Config:
        env_file = ".env"


settings = Settings()
