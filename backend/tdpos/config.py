# backend/tdpos/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key (signs the cart session cookie)
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///tdpos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "Today" and "this month" on the dashboard are measured in this zone
    BUSINESS_TIMEZONE = os.environ.get("BUSINESS_TIMEZONE", "Africa/Maseru")

    BUSINESS_NAME = os.environ.get("BUSINESS_NAME", "TD Holdings")
    CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "M")
    RECEIPT_WIDTH = int(os.environ.get("RECEIPT_WIDTH", "48"))
    # Device file of the thermal printer, e.g. /dev/usb/lp0
    RECEIPT_PRINTER_PATH = os.environ.get("RECEIPT_PRINTER_PATH")

    # Dashboard defaults
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))
    DEAD_STOCK_DAYS = int(os.environ.get("DEAD_STOCK_DAYS", "90"))
    TOP_SELLERS_LIMIT = int(os.environ.get("TOP_SELLERS_LIMIT", "5"))

    # POS behaviour
    CLAMP_LINE_DISCOUNTS = _env_bool("CLAMP_LINE_DISCOUNTS", True)
    DECREMENT_STOCK_ON_CHECKOUT = _env_bool("DECREMENT_STOCK_ON_CHECKOUT", True)


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    BUSINESS_TIMEZONE = "UTC"
