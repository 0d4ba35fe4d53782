"""Application configuration"""
from typing import Dict, List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = "sqlite:///./gqlauth.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 3600  # Recycle connections after 1 hour

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: List[str] = ["100/minute", "1000/hour"]
    RATE_LIMIT_STORAGE_URI: str = "memory://"  # Use redis:// for production

    # Monitoring
    METRICS_ENABLED: bool = True
    METRICS_PATH: str = "/metrics"

    # JWT Authentication
    JWT_SECRET_KEY: Optional[str] = None     # Required; signing refuses to run without it
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "gqlauth"              # iss claim, identifies this instance
    JWT_EXPIRE_SECONDS: int = 3600           # 1 hour for access tokens
    JWT_REFRESH_EXPIRE_SECONDS: int = 2592000  # 30 days; 0 = session cookie

    # Refresh cookie
    REFRESH_COOKIE_NAME: str = "gql_refreshToken"
    SAME_SITE_POLICY: str = "strict"         # strict, lax or none

    # Schema assignment on login
    PERMISSION_TYPE: str = "single"          # single or multiple
    SCHEMA_ID: Optional[int] = None
    GROUP_SCHEMAS: Dict[str, int] = {}       # group handle -> schema id (multiple mode)

    # Rewrite "JWT <token>" headers to "Bearer <accessToken>" for downstream handlers
    RESTRICT_REQUESTS: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]


settings = Settings()
