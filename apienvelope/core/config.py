import logging
import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv


load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment variables.

    Provides validated access to the settings of the envelope API service.
    """

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "api-envelope")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: str = os.getenv("PORT", "8080")
    EXPOSE_ERRORS: bool = _env_flag("EXPOSE_ERRORS")

    @staticmethod
    def allowed_origins(extra_origins: List[str] | None = None) -> List[str]:
        env_origins = [o.strip() for o in os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
        merged = list(env_origins)
        if extra_origins:
            merged.extend(extra_origins)
        # Deduplicate while preserving order
        seen = set()
        result: List[str] = []
        for origin in merged:
            if origin not in seen:
                seen.add(origin)
                result.append(origin)
        return result

    @classmethod
    def is_development(cls) -> bool:
        return cls.ENVIRONMENT == "development"

    @classmethod
    def should_expose_errors(cls) -> bool:
        return cls.EXPOSE_ERRORS or cls.is_development()

    @classmethod
    def port(cls) -> int:
        return int(cls.PORT)

    @classmethod
    def validate(cls) -> None:
        if not isinstance(logging.getLevelName(cls.LOG_LEVEL), int):
            raise ValueError(f"LOG_LEVEL '{cls.LOG_LEVEL}' is not a valid logging level")
        if not cls.PORT.isdigit() or not 0 < int(cls.PORT) < 65536:
            raise ValueError(f"PORT '{cls.PORT}' must be an integer between 1 and 65535")
