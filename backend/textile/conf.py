"""Accessors for the ``TEXTILE_*`` settings blocks.

Values are looked up on every call so ``override_settings`` in tests takes
effect without reloading modules.
"""

from decimal import Decimal

from django.conf import settings

INVENTORY_DEFAULTS = {
    "PURCHASE_MARKUP": "1.2",
    "DYEING_MARKUP": "1.25",
    "PURCHASE_MIN_STOCK_LEVEL": 100,
    "DYEING_MIN_STOCK_RATIO": "0.1",
    "DEFAULT_UNIT_OF_MEASURE": "meters",
    "DYED_UNIT_OF_MEASURE": "kg",
    "THREAD_PAGE_SIZE": 1000,
    "SALES_PAGE_SIZE": 10,
}

LEDGER_DEFAULTS = {
    "BACKEND": "database",
    "DEFAULT_KHATA_NAME": "Main Account Book",
    "DEFAULT_KHATA_DESCRIPTION": "Primary business khata",
    "BILL_PAGE_SIZE": 10,
}


def inventory_setting(key):
    configured = getattr(settings, "TEXTILE_INVENTORY", {}) or {}
    return configured.get(key, INVENTORY_DEFAULTS[key])


def inventory_decimal(key) -> Decimal:
    return Decimal(str(inventory_setting(key)))


def ledger_setting(key):
    configured = getattr(settings, "TEXTILE_LEDGER", {}) or {}
    return configured.get(key, LEDGER_DEFAULTS[key])
