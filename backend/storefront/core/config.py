"""
Centralized application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from the environment / .env"""

    # API Settings
    API_TITLE: str = "Online Store API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "REST backend for the online store (catalog, orders, payments, shipping)"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 5000
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str
    DB_CONNECT_TIMEOUT: int = 10

    # Auth
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    EMAIL_TOKEN_EXPIRE_MINUTES: int = 30

    # CORS - comma-separated string or JSON array
    # Example: "http://localhost:3000,https://shop.example.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000"

    FRONTEND_URL: str = "http://localhost:3000"
    BACKEND_URL: str = "http://localhost:5000"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return [self.FRONTEND_URL]

        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # Rate limits (requests, window seconds)
    RATE_LIMIT_GLOBAL: int = 100
    RATE_LIMIT_GLOBAL_WINDOW: int = 15 * 60
    RATE_LIMIT_LOGIN: int = 5
    RATE_LIMIT_LOGIN_WINDOW: int = 15 * 60
    RATE_LIMIT_REGISTER: int = 3
    RATE_LIMIT_REGISTER_WINDOW: int = 60 * 60
    RATE_LIMIT_PASSWORD_RESET: int = 3
    RATE_LIMIT_PASSWORD_RESET_WINDOW: int = 60 * 60

    # VNPAY
    VNPAY_TMN_CODE: str = ""
    VNPAY_HASH_SECRET: str = ""
    VNPAY_URL: str = "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html"
    VNPAY_RETURN_URL: str = "http://localhost:3000/payment/result"

    # GHN (Giao Hang Nhanh)
    GHN_API_URL: str = "https://dev-online-gateway.ghn.vn/shiip/public-api"
    GHN_TOKEN: str = ""
    GHN_SHOP_ID: str = ""
    GHN_FROM_DISTRICT_ID: int = 1442
    GHN_TIMEOUT: float = 10.0

    # SMTP
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    EMAIL_FROM: str = "Online Store <no-reply@onlinestore.vn>"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
