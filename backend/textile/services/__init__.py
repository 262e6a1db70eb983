from .movements import (
    apply_bank_account_movement,
    apply_bill_payment,
    apply_stock_movement,
    to_money,
)

__all__ = [
    "apply_bank_account_movement",
    "apply_bill_payment",
    "apply_stock_movement",
    "to_money",
]
