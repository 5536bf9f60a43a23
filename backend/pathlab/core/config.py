from typing import List, Union
import logging

from pydantic import AnyHttpUrl, Field, validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    PROJECT_NAME: str = "Quản lý mẫu xét nghiệm"
    API_V1_STR: str = "/api/v1"
    # Must be overridden through .env or the environment in production
    SECRET_KEY: str = Field(
        default="dev-only-secret-key-please-change-in-production",
        description="JWT signing key"
    )
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12  # one working day

    # CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    SQLITE_DATABASE_URI: str = "sqlite:///./pathlab.db"

    # Logging
    LOG_DIR: str = "logs"

    # Kit expiry sweep (in_stock units of expired batches -> expired)
    KIT_EXPIRY_SWEEP_ENABLED: bool = True
    KIT_EXPIRY_SWEEP_HOUR: int = 0  # 0-23
    KIT_EXPIRY_SWEEP_MINUTE: int = 15  # 0-59

    # Sample listing
    SAMPLE_PAGE_SIZE_DEFAULT: int = 50

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
logger.info(f"Loaded settings: API_V1_STR={settings.API_V1_STR}, CORS={settings.BACKEND_CORS_ORIGINS}")
