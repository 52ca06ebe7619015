"""Runtime settings read from the environment.

Settings are re-read on every call to ``get_settings()`` so tests can
override individual values with ``monkeypatch.setenv``.
"""

import os
from dataclasses import dataclass

DEFAULT_ORDER_PREFIX = "MES"
DEFAULT_TAX_RATE = 0.115
DEFAULT_CURRENCY = "usd"
DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_GATEWAY_TIMEOUT = 10.0
DEFAULT_STORE_NAME = "Multi Electric Supply"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    order_prefix: str = DEFAULT_ORDER_PREFIX
    tax_rate: float = DEFAULT_TAX_RATE
    currency: str = DEFAULT_CURRENCY
    base_url: str = DEFAULT_BASE_URL
    reprice_from_catalogue: bool = False
    gateway: str = "fake"
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None
    gateway_timeout: float = DEFAULT_GATEWAY_TIMEOUT
    store_name: str = DEFAULT_STORE_NAME
    environment: str = "development"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            order_prefix=os.getenv("STOREFRONT_ORDER_PREFIX", DEFAULT_ORDER_PREFIX).upper(),
            tax_rate=float(os.getenv("STOREFRONT_TAX_RATE", DEFAULT_TAX_RATE)),
            currency=os.getenv("STOREFRONT_CURRENCY", DEFAULT_CURRENCY).lower(),
            base_url=os.getenv("STOREFRONT_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            reprice_from_catalogue=os.getenv("STOREFRONT_REPRICE_FROM_CATALOGUE", "false").lower() in _TRUTHY,
            gateway=os.getenv("STOREFRONT_GATEWAY", "fake").lower(),
            stripe_secret_key=os.getenv("STRIPE_SECRET_KEY"),
            stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET"),
            gateway_timeout=float(os.getenv("STOREFRONT_GATEWAY_TIMEOUT", DEFAULT_GATEWAY_TIMEOUT)),
            store_name=os.getenv("STOREFRONT_STORE_NAME", DEFAULT_STORE_NAME),
            environment=(os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower(),
        )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def get_settings() -> Settings:
    """Return settings built from the current environment."""
    return Settings.from_env()
