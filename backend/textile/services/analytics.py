"""In-memory sales analytics over a date range and its preceding period."""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import datetime, timedelta
from decimal import Decimal

from django.utils import timezone

from ..models import SalesOrder

RANGE_DAYS = {
    "7days": 7,
    "30days": 30,
    "1year": 365,
}

PAYMENT_MODES = ("CASH", "CHEQUE", "ONLINE")


def trend(current, previous) -> float:
    """Percentage change from ``previous`` to ``current``; 0 without a baseline."""

    previous = Decimal(previous or 0)
    if previous == 0:
        return 0.0
    return float((Decimal(current or 0) - previous) / previous * 100)


def period_bounds(range_key: str, now: datetime | None = None):
    """Return ``(start, end, prev_start, prev_end)`` for ``range_key``.

    The previous period has the same length and ends the day before the
    current one starts.
    """

    days = RANGE_DAYS.get(range_key, RANGE_DAYS["30days"])
    end = now or timezone.now()
    start = end - timedelta(days=days)
    prev_end = start - timedelta(days=1)
    prev_start = prev_end - timedelta(days=days)
    return start, end, prev_start, prev_end


def _orders_between(start, end):
    return list(
        SalesOrder.objects.filter(order_date__gte=start, order_date__lte=end)
        .select_related("customer")
        .prefetch_related("items")
    )


def _timeframe_buckets(range_key: str, orders, end: datetime):
    local_end = timezone.localtime(end) if timezone.is_aware(end) else end
    buckets = []

    if range_key == "7days":
        for offset in range(6, -1, -1):
            day = (local_end - timedelta(days=offset)).date()
            buckets.append({"label": day.strftime("%a"), "start": day, "end": day})
    elif range_key == "1year":
        year, month = local_end.year, local_end.month
        months = []
        for _ in range(12):
            months.append((year, month))
            month -= 1
            if month == 0:
                month, year = 12, year - 1
        for year, month in reversed(months):
            first = datetime(year, month, 1).date()
            buckets.append({"label": first.strftime("%b"), "start": first, "month": (year, month)})
    else:
        for index in range(4):
            week_end = (local_end - timedelta(days=7 * (3 - index))).date()
            week_start = week_end - timedelta(days=6)
            buckets.append({"label": f"Week {index + 1}", "start": week_start, "end": week_end})

    results = []
    for bucket in buckets:
        revenue = Decimal("0")
        count = 0
        for order in orders:
            order_day = timezone.localtime(order.order_date).date() if timezone.is_aware(order.order_date) else order.order_date.date()
            if "month" in bucket:
                matches = (order_day.year, order_day.month) == bucket["month"]
            else:
                matches = bucket["start"] <= order_day <= bucket["end"]
            if matches:
                revenue += Decimal(order.total_sale)
                count += 1
        results.append({"name": bucket["label"], "revenue": float(revenue), "orders": count})
    return results


def sales_analytics(range_key: str = "30days", now: datetime | None = None) -> dict:
    if range_key not in RANGE_DAYS:
        range_key = "30days"
    start, end, prev_start, prev_end = period_bounds(range_key, now)
    orders = _orders_between(start, end)
    previous = _orders_between(prev_start, prev_end)

    total_revenue = sum((Decimal(order.total_sale) for order in orders), Decimal("0"))
    previous_revenue = sum((Decimal(order.total_sale) for order in previous), Decimal("0"))
    total_orders = len(orders)
    average = total_revenue / total_orders if total_orders else Decimal("0")

    mode_counts = Counter(order.payment_mode for order in orders if order.payment_mode)
    payment_distribution = [
        {"name": mode, "value": mode_counts[mode]}
        for mode in PAYMENT_MODES
        if mode_counts[mode]
    ]

    product_totals = defaultdict(Decimal)
    for order in orders:
        for item in order.items.all():
            product_totals[item.product_type] += Decimal(item.subtotal)
    product_sum = sum(product_totals.values(), Decimal("0"))
    product_distribution = [
        {
            "name": product_type,
            "value": float(product_totals[product_type] / product_sum * 100) if product_sum else 0.0,
        }
        for product_type in ("THREAD", "FABRIC")
        if product_totals.get(product_type)
    ]

    status_counts = Counter(order.payment_status for order in orders)
    status_distribution = [
        {"name": status, "value": count} for status, count in sorted(status_counts.items())
    ]

    customers = {}
    for order in orders:
        entry = customers.setdefault(
            order.customer_id, {"name": order.customer.name, "total": Decimal("0"), "count": 0}
        )
        entry["total"] += Decimal(order.total_sale)
        entry["count"] += 1
    top_customers = sorted(customers.values(), key=lambda entry: entry["total"], reverse=True)[:5]

    return {
        "totalRevenue": float(total_revenue),
        "totalOrders": total_orders,
        "averageOrderSize": float(average),
        "revenueTrend": trend(total_revenue, previous_revenue),
        "orderTrend": trend(total_orders, len(previous)),
        "paymentDistribution": payment_distribution,
        "productDistribution": product_distribution,
        "salesByTimeframe": _timeframe_buckets(range_key, orders, end),
        "paymentStatusDistribution": status_distribution,
        "topCustomers": [
            {"name": entry["name"], "total": float(entry["total"]), "count": entry["count"]}
            for entry in top_customers
        ],
    }
