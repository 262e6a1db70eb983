"""Sales order submission and pricing helpers."""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.utils import timezone

from ..exceptions import ValidationFailed
from ..models import (
    ChequeTransaction,
    Customer,
    FabricProduction,
    Inventory,
    Payment,
    SalesOrder,
    SalesOrderItem,
    ThreadPurchase,
)
from .inventory import record_sale_movement
from .movements import to_money

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def line_subtotal(unit_price, quantity, discount=0, tax=0) -> Decimal:
    """Return ``price * qty * (1 - discount%) * (1 + tax%)`` rounded to cents."""

    value = (
        Decimal(unit_price)
        * Decimal(quantity)
        * (1 - Decimal(discount or 0) / HUNDRED)
        * (1 + Decimal(tax or 0) / HUNDRED)
    )
    return to_money(value)


def order_total(subtotals, discount=0, tax=0) -> Decimal:
    """Apply the order-level discount and tax percentages to the item sum."""

    total = sum((Decimal(value) for value in subtotals), Decimal("0"))
    if discount and Decimal(discount) > 0:
        total *= 1 - Decimal(discount) / HUNDRED
    if tax and Decimal(tax) > 0:
        total *= 1 + Decimal(tax) / HUNDRED
    return to_money(total)


def resolve_order_number(requested: str | None) -> str:
    """Use ``requested`` when it is free, otherwise generate a fresh number."""

    if requested:
        if not SalesOrder.objects.filter(order_number=requested).exists():
            return requested
        logger.warning("Order number %s already exists; generating a new one", requested)

    number = SalesOrder.generate_order_number()
    while SalesOrder.objects.filter(order_number=number).exists():
        number = SalesOrder.generate_order_number()
    return number


def _product_source(item: dict) -> dict:
    product_type = item["productType"]
    if product_type == Inventory.THREAD:
        source_id = item.get("threadPurchaseId") or item.get("productId")
        purchase = ThreadPurchase.objects.filter(pk=source_id).first()
        if purchase is None:
            raise ValidationFailed(f"Thread purchase with ID {source_id} not found")
        return {"thread_purchase": purchase}

    source_id = item.get("fabricProductionId") or item.get("productId")
    production = FabricProduction.objects.filter(pk=source_id).first()
    if production is None:
        raise ValidationFailed(f"Fabric production with ID {source_id} not found")
    return {"fabric_production": production}


def _create_payment(order: SalesOrder, data: dict) -> Payment:
    mode = data.get("paymentMode") or SalesOrder.CASH
    payment = Payment.objects.create(
        amount=data["paymentAmount"],
        mode=mode,
        sales_order=order,
        transaction_date=timezone.now(),
        reference_number=order.order_number,
        description=f"Payment for Order #{order.order_number}",
        remarks=data.get("remarks"),
    )
    if mode == SalesOrder.CHEQUE:
        ChequeTransaction.objects.create(
            payment=payment,
            cheque_number=data["chequeNumber"],
            bank=data["bank"],
            branch=data.get("branch") or "",
            cheque_amount=data["paymentAmount"],
            remarks=data.get("chequeRemarks") or f"Cheque payment for Order #{order.order_number}",
        )
    return payment


def submit_sales_order(data: dict, user=None) -> SalesOrder:
    """Persist a validated sales submission.

    The order, its items, stock movements and payment are written in a single
    transaction; any failure leaves nothing behind.
    """

    with transaction.atomic():
        customer_id = data.get("customerId")
        if customer_id:
            customer = Customer.objects.filter(pk=customer_id).first()
            if customer is None:
                raise ValidationFailed(f"Customer with ID {customer_id} not found")
        else:
            customer = Customer.objects.create(name=data["customerName"])

        try:
            with transaction.atomic():
                order = SalesOrder.objects.create(
                    order_number=resolve_order_number(data.get("orderNumber")),
                    order_date=data.get("orderDate") or timezone.now(),
                    customer=customer,
                    delivery_date=data.get("deliveryDate"),
                    delivery_address=data.get("deliveryAddress"),
                    remarks=data.get("remarks"),
                    payment_mode=data.get("paymentMode"),
                    payment_status=data["paymentStatus"],
                    discount=data.get("discount") or 0,
                    tax=data.get("tax") or 0,
                    total_sale=data["totalSale"],
                    created_by=user if getattr(user, "is_authenticated", False) else None,
                )
        except IntegrityError as exc:
            raise ValidationFailed("Order number is already in use") from exc

        for item in data["items"]:
            source = _product_source(item)
            inventory_item_id = item.get("inventoryItemId")
            SalesOrderItem.objects.create(
                sales_order=order,
                product_type=item["productType"],
                product_id=item.get("productId") or next(iter(source.values())).pk,
                inventory_item_id=inventory_item_id,
                quantity_sold=item["quantitySold"],
                unit_price=item["unitPrice"],
                discount=item.get("discount") or 0,
                tax=item.get("tax") or 0,
                subtotal=item["subtotal"],
                **source,
            )
            if data.get("updateInventory") and inventory_item_id:
                record_sale_movement(inventory_item_id, item["quantitySold"], order)

        if data.get("paymentAmount") and Decimal(data["paymentAmount"]) > 0:
            _create_payment(order, data)

    logger.info("Created sales order %s with %d items", order.order_number, len(data["items"]))
    return order
