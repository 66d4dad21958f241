"""Velvet Vogue storefront settings."""

from __future__ import annotations

import json
import os
import shutil
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from .common.pricing import PricingConfig, ShippingMethod

PACKAGE_ROOT = Path(__file__).resolve().parent
SEED_CATALOG = PACKAGE_ROOT / "data" / "seed_products.json"

# settings.json keys that map onto config fields
SETTINGS_KEYS = {
    "CURRENCY": "currency",
    "TAX_RATE": "tax_rate",
    "FREE_SHIPPING_THRESHOLD": "free_shipping_threshold",
    "STANDARD_SHIPPING_FEE": "standard_shipping_fee",
    "EXPRESS_SHIPPING_FEE": "express_shipping_fee",
    "PAYMENT_SUCCESS_RATE": "payment_success_rate",
    "PAYMENT_DELAY_SECONDS": "payment_delay_seconds",
}


def validate_currency(value: Optional[str]) -> str:
    v = (value or "GBP").strip().upper()
    if len(v) != 3:
        raise ValueError("Invalid currency code: expected ISO4217 length 3")
    return v


def _decimal(value: Any, name: str) -> Decimal:
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc
    if not number.is_finite() or number < 0:
        raise ValueError(f"{name} must be a non-negative number, got {value!r}")
    return number


def _rate(value: Any, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc
    if not 0.0 <= number <= 1.0:
        raise ValueError(f"{name} must be between 0 and 1, got {value!r}")
    return number


@dataclass
class StoreConfig:
    """Settings for the storefront, its admin panel and the pricing rules."""

    secret_key: str
    admin_username: str
    admin_password: str
    data_dir: Path
    database_url: str
    currency: str = "GBP"
    tax_rate: Decimal = Decimal("0.20")
    free_shipping_threshold: Decimal = Decimal("50.00")
    standard_shipping_fee: Decimal = Decimal("4.99")
    express_shipping_fee: Decimal = Decimal("9.99")
    payment_success_rate: float = 0.9
    payment_delay_seconds: float = 1.5
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def catalog_file(self) -> Path:
        return self.data_dir / "products.json"

    @property
    def settings_file(self) -> Path:
        return self.data_dir / "settings.json"

    def pricing_config(self) -> PricingConfig:
        return PricingConfig(
            tax_rate=self.tax_rate,
            free_shipping_threshold=self.free_shipping_threshold,
            shipping_fees={
                ShippingMethod.STANDARD: self.standard_shipping_fee,
                ShippingMethod.EXPRESS: self.express_shipping_fee,
            },
        )

    def apply(self, values: Mapping[str, Any]) -> "StoreConfig":
        """Apply ``SETTINGS_KEYS`` overrides, validating each value."""
        for key, attr in SETTINGS_KEYS.items():
            if key not in values or values[key] in (None, ""):
                continue
            raw = values[key]
            if attr == "currency":
                setattr(self, attr, validate_currency(raw))
            elif attr == "payment_success_rate":
                setattr(self, attr, _rate(raw, key))
            elif attr == "payment_delay_seconds":
                setattr(self, attr, float(_decimal(raw, key)))
            else:
                setattr(self, attr, _decimal(raw, key))
        return self

    @classmethod
    def load(cls, data_dir: Optional[Path] = None) -> "StoreConfig":
        """Build settings from env vars, then ``settings.json``, and seed the data dir."""

        root = Path(data_dir or os.environ.get("VELVET_VOGUE_DATA_DIR") or PACKAGE_ROOT / "data")
        root.mkdir(parents=True, exist_ok=True)
        if (root / ".env").exists():
            load_dotenv(root / ".env")

        config = cls(
            secret_key=os.environ.get("VELVET_VOGUE_SECRET_KEY", "velvet-vogue-dev"),
            admin_username=os.environ.get("VELVET_VOGUE_ADMIN_USER", "admin@velvetvogue.com"),
            admin_password=os.environ.get("VELVET_VOGUE_ADMIN_PASS", "admin123"),
            data_dir=root,
            database_url=os.environ.get("DATABASE_URL") or f"sqlite:///{root / 'store.db'}",
        )
        config.apply({key: os.environ.get(key) for key in SETTINGS_KEYS})

        # settings.json wins over the environment
        if config.settings_file.exists():
            try:
                settings = json.loads(config.settings_file.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                raise ValueError(f"{config.settings_file} is not valid JSON") from exc
            if isinstance(settings, dict):
                config.apply(settings)
                config.extra = {k: v for k, v in settings.items() if k not in SETTINGS_KEYS}
                print(f"[StoreConfig] loaded settings from {config.settings_file}")

        if not config.catalog_file.exists():
            if SEED_CATALOG.exists():
                shutil.copyfile(SEED_CATALOG, config.catalog_file)
                print(f"[StoreConfig] seeded catalog at {config.catalog_file}")
            else:
                config.catalog_file.write_text('{"products": [], "categories": []}\n', encoding="utf-8")

        return config
