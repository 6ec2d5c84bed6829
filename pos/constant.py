"""Editable seed values for a fresh account."""

from __future__ import annotations

DEFAULT_SETTINGS_RAW: dict[str, str | float | int | bool | None] = {
    "store_name": "Bhoj Restaurant",
    "branch_name": "Main Branch",
    "address": "Dhaka, Bangladesh",
    "phone": "+880 1XXX XXXXXX",
    "email": "info@bhoj.com",
    "currency_symbol": "৳",
    "vat_rate": 5,
    "vat_enabled": True,
    "service_charge_rate": 0,
    "service_charge_enabled": False,
    "invoice_header": "BHOJ POS",
    "invoice_footer": "Thank you for dining with us!",
    "invoice_prefix": "INV-",
    "invoice_starting_number": 1001,
    "logo_url": None,
}

# Seeded whenever an account has no team members so the lock screen always has a way in.
DEFAULT_ADMIN_RAW: dict[str, str] = {
    "id": "ADMIN-001",
    "name": "Admin",
    "role": "ADMIN",
    "pin": "1234",
}

STATUS_BADGE_STYLES: dict[str, str] = {
    "PENDING": "bold #1f1600 on #f2c94c",
    "COOKING": "bold #ffffff on #e67e22",
    "READY": "bold #0b1f0f on #5fbf72",
    "COMPLETED": "bold #ffffff on #4f4f4f",
    "CANCELLED": "bold #ffffff on #b23a48",
}

TYPE_BADGE_STYLES: dict[str, str] = {
    "DINE_IN": "bold #ffffff on #2f6db5",
    "TAKE_AWAY": "bold #ffffff on #8e44ad",
    "DELIVERY": "bold #ffffff on #16a085",
}

SPLIT_INVOICE_SUFFIX = "-S"
# Stored totals below the recomputed gross by more than this are read back as a discount.
DISCOUNT_DETECTION_TOLERANCE = 0.1
ESTIMATED_COST_RATIO = 0.4
TOP_ITEMS_LIMIT = 8
