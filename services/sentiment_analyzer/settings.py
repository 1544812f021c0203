import os
from typing import Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings


class ServiceConfig(BaseModel):
    """Configuration for the downstream sentiment service"""

    url: str
    timeout: float = 30.0
    max_retries: int = 0
    retry_backoff: float = 1.0
    api_key: Optional[str] = None


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Sentiment Analyzer"
    version: str = "1.0.0"
    debug: bool = False

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8080

    log_level: str = "INFO"

    sentiment_service: ServiceConfig = ServiceConfig(
        url=os.getenv("SENTIMENT_SERVICE_URL", "http://localhost:8002"),
        timeout=30.0,  # Model inference can be slow
        api_key=os.getenv("SENTIMENT_SERVICE_API_KEY"),
    )

    # HTTP client configuration
    connection_pool_size: int = 100
    connection_timeout: float = 5.0
    read_timeout: float = 30.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
