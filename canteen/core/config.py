"""Client configuration."""

from decimal import Decimal
from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the canteen client."""

    app_name: str = "Campus Canteen"
    api_base_url: str = getenv("CANTEEN_API_BASE_URL", "http://localhost:8080/api")
    api_token: str | None = getenv("CANTEEN_API_TOKEN") or None
    http_timeout_seconds: float = float(getenv("CANTEEN_HTTP_TIMEOUT_SECONDS", "10"))
    addon_price: Decimal = Decimal(getenv("CANTEEN_ADDON_PRICE", "15.00"))
    poll_interval_seconds: float = float(getenv("CANTEEN_POLL_INTERVAL_SECONDS", "5"))
    default_payment_method: str = getenv("CANTEEN_DEFAULT_PAYMENT_METHOD", "Cash")
    order_number_prefix: str = getenv("CANTEEN_ORDER_NUMBER_PREFIX", "TG")
    user_id: int | None = int(getenv("CANTEEN_USER_ID")) if getenv("CANTEEN_USER_ID") else None


settings: Settings = Settings()
