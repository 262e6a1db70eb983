"""Shared helpers for posting balance and stock movements.

Every adjustment runs inside a transaction and takes a row-level lock on the
target before mutating it.  Amounts are normalised to two decimal places and
may be positive or negative so callers express direction explicitly.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.apps import apps
from django.db import transaction

__all__ = [
    "apply_bank_account_movement",
    "apply_bill_payment",
    "apply_stock_movement",
    "to_money",
]

MONEY_QUANTIZER = Decimal("0.01")


def to_money(amount: Optional[Decimal | int | float | str]) -> Decimal:
    """Normalise *amount* to a Decimal with the project's rounding rules."""

    if amount in (None, "", 0):
        return Decimal("0.00")
    if isinstance(amount, Decimal):
        value = amount
    else:
        value = Decimal(str(amount))
    return value.quantize(MONEY_QUANTIZER, rounding=ROUND_HALF_UP)


def _adjust_field(model_name: str, pk: Optional[int], field: str, delta: Decimal, *, floor=None):
    """Adjust ``field`` on ``model_name`` by ``delta`` under a row lock.

    Returns the locked instance after saving, or ``None`` when nothing changed.
    When ``floor`` is given the new value is clamped so it never drops below it.
    """

    if not pk or not delta:
        return None

    model = apps.get_model("textile", model_name)

    with transaction.atomic():
        obj = model.objects.select_for_update().get(pk=pk)
        current = Decimal(getattr(obj, field) or 0)
        new_value = (current + delta).quantize(MONEY_QUANTIZER, rounding=ROUND_HALF_UP)
        if floor is not None and new_value < floor:
            new_value = Decimal(floor).quantize(MONEY_QUANTIZER)
        setattr(obj, field, new_value)
        obj.save(update_fields=[field, "updated_at"])
        return obj


def apply_bank_account_movement(account_id: Optional[int], amount) -> Optional[Decimal]:
    """Apply a signed movement to a ledger bank account balance."""

    account = _adjust_field("BankAccount", account_id, "balance", to_money(amount))
    return account.balance if account else None


def apply_bill_payment(bill_id: Optional[int], amount) -> Optional[Decimal]:
    """Add ``amount`` to a bill's paid amount and refresh its status."""

    with transaction.atomic():
        bill = _adjust_field("Bill", bill_id, "paid_amount", to_money(amount))
        if bill is None:
            return None
        status = bill.status_for_paid_amount()
        if status != bill.status:
            bill.status = status
            bill.save(update_fields=["status", "updated_at"])
        return bill.paid_amount


def apply_stock_movement(inventory_id: Optional[int], quantity, *, allow_negative: bool = True) -> Optional[Decimal]:
    """Move an inventory item's ``current_quantity`` by ``quantity``.

    With ``allow_negative=False`` the stock is floored at zero.
    """

    floor = None if allow_negative else Decimal("0")
    item = _adjust_field("Inventory", inventory_id, "current_quantity", to_money(quantity), floor=floor)
    return item.current_quantity if item else None
