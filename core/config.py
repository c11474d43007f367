# app/core/config.py
from typing import *

from pydantic_settings import BaseSettings



class Settings(BaseSettings):
    APP_NAME: str = "Coffee Morning Challenge"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ADMIN_SESSION_TIMEOUT_MINUTES: int = 60
    ADMIN_SESSION_WARNING_MINUTES: int = 5

    # Stripe
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    CURRENCY: str = "eur"
    PAYMENT_SOURCE: str = "coffee-morning-platform"

    # Public site, used for campaign links and payment-link redirects
    SITE_URL: str = "https://coffee.yspi.ie"

    # Email delivery
    EMAIL_SEND_URL: Optional[str] = None
    EMAIL_SERVICE_KEY: Optional[str] = None
    EMAIL_TIMEOUT_SECONDS: float = 10.0
    TEMPLATE_CACHE_SECONDS: int = 5 * 60
    NOTIFY_ON_REJECTION: bool = False

    # Database
    DATABASE_URL: str

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
