"""Guarded deletes for production records.

Each helper refuses to delete a record that downstream rows still depend on
and otherwise removes the record together with its children in one
transaction.
"""

import logging

from django.db import transaction

from ..exceptions import DependencyError
from ..models import DyeingProcess, FabricProduction, InventoryTransaction, ThreadPurchase

logger = logging.getLogger(__name__)


def delete_thread_purchase(purchase: ThreadPurchase) -> None:
    if (
        purchase.fabric_productions.exists()
        or FabricProduction.objects.filter(dyeing_process__thread_purchase=purchase).exists()
    ):
        raise DependencyError("Cannot delete thread purchase that has been used in fabric production")
    if purchase.sales_items.exists():
        raise DependencyError("Cannot delete thread purchase that has been sold")

    purchase_id = purchase.pk
    with transaction.atomic():
        process_ids = list(purchase.dyeing_processes.values_list("id", flat=True))
        InventoryTransaction.objects.filter(dyeing_process_id__in=process_ids).delete()
        DyeingProcess.objects.filter(id__in=process_ids).delete()
        purchase.payments.all().delete()
        purchase.inventory_transactions.all().delete()
        purchase.delete()
    logger.info("Deleted thread purchase #%s with %d dyeing processes", purchase_id, len(process_ids))


def delete_dyeing_process(process: DyeingProcess) -> None:
    if process.fabric_productions.exists():
        raise DependencyError("Cannot delete dyeing process that has fabric productions")

    with transaction.atomic():
        process.inventory_transactions.all().delete()
        process.delete()


def delete_fabric_production(production: FabricProduction) -> None:
    if production.sales_items.exists():
        raise DependencyError("Cannot delete fabric production that has been sold")

    with transaction.atomic():
        production.inventory_transactions.all().delete()
        production.delete()
