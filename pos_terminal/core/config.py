"""POS Terminal Configuration"""

from decimal import Decimal
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "POS Terminal"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Back-office API
    backoffice_base_url: str = "http://localhost:8080/api"
    backoffice_api_token: Optional[str] = None
    request_timeout: float = 30.0

    # Pricing
    currency: str = "UGX"
    tax_rate: Decimal = Decimal("0.18")
    # Empty means tax is disabled for every payment method
    taxable_payment_methods: list[str] = []

    # Notifications
    notification_log_size: int = 20
    notification_category: str = "inventory"
    banner_dismiss_seconds: float = 5.0

    # Alerting
    stock_alert_window_seconds: int = 300
    expiry_alert_window_seconds: int = 86400
    stock_scan_interval: float = 60.0
    expiry_scan_interval: float = 86400.0
    device_poll_interval: float = 45.0

    # Sessions
    session_max_idle_hours: float = 24.0
    session_cleanup_interval: float = 3600.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def tax_enabled(self) -> bool:
        """Check if any payment method is taxable"""
        return bool(self.taxable_payment_methods)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
