"""Expose public API views for the application."""

from .dyeing import DyeingProcessViewSet
from .fabric import FabricProductionViewSet
from .inventory import InventoryViewSet, inventory_report
from .ledger import (
    BankAccountViewSet,
    ChequeViewSet,
    KhataBillViewSet,
    KhataViewSet,
    LedgerTransactionViewSet,
    PartyViewSet,
    bill_collection,
    bill_detail,
    khata_collection,
)
from .sales import SalesOrderViewSet, SalesPaymentViewSet, sales_report
from .threads import ThreadPurchaseViewSet, VendorViewSet

__all__ = [
    'BankAccountViewSet',
    'ChequeViewSet',
    'DyeingProcessViewSet',
    'FabricProductionViewSet',
    'InventoryViewSet',
    'KhataBillViewSet',
    'KhataViewSet',
    'LedgerTransactionViewSet',
    'PartyViewSet',
    'SalesOrderViewSet',
    'SalesPaymentViewSet',
    'ThreadPurchaseViewSet',
    'VendorViewSet',
    'bill_collection',
    'bill_detail',
    'inventory_report',
    'khata_collection',
    'sales_report',
]
