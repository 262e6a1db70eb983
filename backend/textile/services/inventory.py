"""Workflows that turn purchases, dyeing output and sales into stock movements."""

from __future__ import annotations

import logging
import math
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.utils import timezone

from ..conf import inventory_decimal, inventory_setting
from ..exceptions import ValidationFailed
from ..models import (
    DyeingProcess,
    Inventory,
    InventoryTransaction,
    ThreadPurchase,
    ThreadType,
)
from .movements import apply_stock_movement, to_money

logger = logging.getLogger(__name__)


def add_purchase_to_inventory(purchase: ThreadPurchase) -> InventoryTransaction:
    """Create the stock item and PURCHASE movement for a received purchase."""

    quantity = Decimal(purchase.quantity)
    unit_price = Decimal(purchase.unit_price)

    with transaction.atomic():
        thread_type = ThreadType.resolve(
            purchase.thread_type,
            units=purchase.unit_of_measure,
        )
        item = Inventory.objects.create(
            item_code=f"THR-{purchase.pk}-{Inventory.timestamp_suffix()}",
            description=f"{purchase.thread_type} - {purchase.color or 'Raw'}",
            product_type=Inventory.THREAD,
            thread_type=thread_type,
            current_quantity=quantity,
            unit_of_measure=purchase.unit_of_measure,
            min_stock_level=inventory_setting("PURCHASE_MIN_STOCK_LEVEL"),
            cost_per_unit=unit_price,
            sale_price=to_money(unit_price * inventory_decimal("PURCHASE_MARKUP")),
            location="Warehouse",
            last_restocked=timezone.now(),
            notes=f"Thread purchased from {purchase.vendor.name}",
        )
        movement = InventoryTransaction.objects.create(
            inventory=item,
            transaction_type=InventoryTransaction.PURCHASE,
            quantity=quantity,
            remaining_quantity=quantity,
            unit_cost=unit_price,
            total_cost=to_money(quantity * unit_price),
            reference_type="ThreadPurchase",
            reference_id=purchase.pk,
            thread_purchase=purchase,
            transaction_date=timezone.now(),
            notes=f"Initial inventory from thread purchase #{purchase.pk}",
        )
    logger.info("Added thread purchase #%s to inventory as %s", purchase.pk, item.item_code)
    return movement


def try_add_purchase_to_inventory(purchase: ThreadPurchase) -> InventoryTransaction | None:
    """Best-effort wrapper: failures are logged and the purchase stands."""

    try:
        return add_purchase_to_inventory(purchase)
    except Exception:
        logger.exception("Failed to add thread purchase #%s to inventory", purchase.pk)
        return None


def _dyed_description(process: DyeingProcess) -> str:
    thread_name = process.thread_purchase.thread_type or "Thread"
    if process.color_name:
        color_info = f"{process.color_name} ({process.color_code or 'No code'})"
    else:
        color_info = "Dyed Thread"
    return f"{thread_name} - {color_info}"


def _exact_unit_cost(process: DyeingProcess) -> Decimal:
    output = Decimal(process.output_quantity or 0)
    if output <= 0:
        return Decimal("0")
    return Decimal(process.total_cost or 0) / output


def add_dyeing_output_to_inventory(process: DyeingProcess) -> InventoryTransaction:
    """Stock the output of a completed dyeing process exactly once.

    The process row is locked and a PRODUCTION movement already recorded for
    it is returned unchanged.  The unique constraint on
    ``(dyeing_process, PRODUCTION)`` settles races between concurrent callers.
    """

    with transaction.atomic():
        process = (
            DyeingProcess.objects.select_for_update()
            .select_related("thread_purchase")
            .get(pk=process.pk)
        )
        existing = InventoryTransaction.objects.filter(
            dyeing_process=process,
            transaction_type=InventoryTransaction.PRODUCTION,
        ).first()
        if existing:
            return existing

        purchase = process.thread_purchase
        quantity = Decimal(process.output_quantity or 0)
        exact_unit_cost = _exact_unit_cost(process)
        unit_cost = to_money(exact_unit_cost)
        thread_type = ThreadType.resolve(
            purchase.thread_type,
            units=purchase.unit_of_measure or inventory_setting("DYED_UNIT_OF_MEASURE"),
            description=f"Thread type from dyeing process #{process.pk}",
        )

        try:
            with transaction.atomic():
                item = Inventory.objects.create(
                    item_code=f"DT-{process.pk}-{Inventory.timestamp_suffix()}",
                    description=_dyed_description(process),
                    product_type=Inventory.THREAD,
                    thread_type=thread_type,
                    current_quantity=quantity,
                    unit_of_measure=purchase.unit_of_measure or inventory_setting("DYED_UNIT_OF_MEASURE"),
                    min_stock_level=math.ceil(quantity * inventory_decimal("DYEING_MIN_STOCK_RATIO")),
                    cost_per_unit=unit_cost,
                    sale_price=to_money(exact_unit_cost * inventory_decimal("DYEING_MARKUP")),
                    location="Dyeing Department",
                    last_restocked=timezone.now(),
                    notes=f"Auto-created from dyeing process {process.pk}",
                )
                movement = InventoryTransaction.objects.create(
                    inventory=item,
                    transaction_type=InventoryTransaction.PRODUCTION,
                    quantity=quantity,
                    remaining_quantity=quantity,
                    unit_cost=unit_cost,
                    total_cost=to_money(process.total_cost),
                    reference_type="DYEING",
                    reference_id=process.pk,
                    dyeing_process=process,
                    thread_purchase=purchase,
                    transaction_date=timezone.now(),
                    notes=f"From dyeing process #{process.pk}",
                )
        except IntegrityError:
            logger.warning("Dyeing process #%s was stocked concurrently", process.pk)
            return InventoryTransaction.objects.get(
                dyeing_process=process,
                transaction_type=InventoryTransaction.PRODUCTION,
            )

        process.inventory_status = DyeingProcess.INVENTORY_ADDED
        process.save(update_fields=["inventory_status", "updated_at"])

    logger.info("Added dyeing process #%s output to inventory as %s", process.pk, item.item_code)
    return movement


def try_add_dyeing_output_to_inventory(process: DyeingProcess) -> InventoryTransaction | None:
    """Best-effort wrapper that flags the process with ``ERROR`` on failure."""

    try:
        return add_dyeing_output_to_inventory(process)
    except Exception:
        logger.exception("Failed to add dyeing process #%s to inventory", process.pk)
        DyeingProcess.objects.filter(pk=process.pk).update(
            inventory_status=DyeingProcess.INVENTORY_ERROR
        )
        return None


def find_or_create_thread_inventory(purchase: ThreadPurchase) -> Inventory:
    """Return the THREAD stock item for the purchase's thread type.

    When none exists yet one is opened with the purchase quantity and a
    matching PURCHASE movement.
    """

    item = (
        Inventory.objects.filter(
            product_type=Inventory.THREAD,
            thread_type__name__iexact=purchase.thread_type,
        )
        .order_by("id")
        .first()
    )
    if item:
        return item

    quantity = Decimal(purchase.quantity)
    unit_price = Decimal(purchase.unit_price)
    with transaction.atomic():
        thread_type = ThreadType.resolve(purchase.thread_type, units=purchase.unit_of_measure)
        item = Inventory.objects.create(
            item_code=f"TH-{purchase.pk}-{Inventory.timestamp_suffix()}",
            description=f"{purchase.thread_type} - {purchase.color or 'Raw'}",
            product_type=Inventory.THREAD,
            thread_type=thread_type,
            current_quantity=quantity,
            unit_of_measure=purchase.unit_of_measure,
            min_stock_level=inventory_setting("PURCHASE_MIN_STOCK_LEVEL"),
            cost_per_unit=unit_price,
            sale_price=to_money(unit_price * inventory_decimal("PURCHASE_MARKUP")),
            location="Warehouse",
            last_restocked=timezone.now(),
            notes=f"Opened for dyeing thread purchase #{purchase.pk}",
        )
        InventoryTransaction.objects.create(
            inventory=item,
            transaction_type=InventoryTransaction.PURCHASE,
            quantity=quantity,
            remaining_quantity=quantity,
            unit_cost=unit_price,
            total_cost=to_money(quantity * unit_price),
            reference_type="ThreadPurchase",
            reference_id=purchase.pk,
            thread_purchase=purchase,
            notes=f"Initial inventory from thread purchase #{purchase.pk}",
        )
    return item


def consume_thread_for_dyeing(item: Inventory, process: DyeingProcess) -> dict:
    """Draw the dye quantity out of ``item`` and record an ADJUSTMENT movement."""

    dye_quantity = Decimal(process.dye_quantity)
    with transaction.atomic():
        locked = Inventory.objects.select_for_update().get(pk=item.pk)
        available = Decimal(locked.current_quantity)
        remaining = max(Decimal("0"), available - dye_quantity)
        InventoryTransaction.objects.create(
            inventory=locked,
            transaction_type=InventoryTransaction.ADJUSTMENT,
            quantity=-dye_quantity,
            remaining_quantity=remaining,
            unit_cost=locked.cost_per_unit,
            total_cost=to_money(dye_quantity * Decimal(locked.cost_per_unit)),
            reference_type="DyeingProcess",
            reference_id=process.pk,
            thread_purchase_id=process.thread_purchase_id,
            notes=f"Thread used for dyeing process #{process.pk}",
        )
        apply_stock_movement(locked.pk, -dye_quantity, allow_negative=False)
    return {"before": available, "used": dye_quantity, "remaining": remaining}


def record_sale_movement(item_id: int, quantity, sales_order) -> InventoryTransaction:
    """Take ``quantity`` out of stock for a sales order.

    Raises :class:`ValidationFailed` when stock is insufficient.  Dropping
    under the minimum stock level is only logged.
    """

    quantity = to_money(quantity)
    with transaction.atomic():
        try:
            item = Inventory.objects.select_for_update().get(pk=item_id)
        except Inventory.DoesNotExist as exc:
            raise ValidationFailed(f"Inventory item with ID {item_id} not found") from exc

        available = Decimal(item.current_quantity)
        if available < quantity:
            raise ValidationFailed(
                f"Insufficient inventory for {item.description}. Available: {available}, Requested: {quantity}"
            )
        remaining = available - quantity
        if remaining < Decimal(item.min_stock_level):
            logger.warning(
                "Inventory %s falls below its minimum stock level (%s < %s)",
                item.item_code,
                remaining,
                item.min_stock_level,
            )

        apply_stock_movement(item.pk, -quantity)
        return InventoryTransaction.objects.create(
            inventory=item,
            transaction_type=InventoryTransaction.SALES,
            quantity=-quantity,
            remaining_quantity=remaining,
            unit_cost=item.cost_per_unit,
            total_cost=to_money(Decimal(item.cost_per_unit) * quantity),
            reference_type="SalesOrder",
            reference_id=sales_order.pk,
            sales_order=sales_order,
            notes=f"Sold in order {sales_order.order_number}",
        )
