from datetime import timedelta
from decimal import Decimal

from django.contrib.auth.models import User
from django.utils import timezone
from rest_framework.test import APIClient

from ..models import Bill, DyeingProcess, Khata, ThreadPurchase, Vendor


def authenticated_client(username: str = "tester", password: str = "pw"):
    user = User.objects.create_user(username=username, password=password)
    client = APIClient()
    client.force_authenticate(user=user)
    return user, client


def create_purchase(vendor=None, *, quantity="100", unit_price="10", received=True, **extra):
    vendor = vendor or Vendor.objects.create(name="Lahore Threads")
    quantity = Decimal(quantity)
    unit_price = Decimal(unit_price)
    fields = {
        "thread_type": "Cotton 40s",
        "color_status": ThreadPurchase.RAW,
        "unit_of_measure": "meters",
        "received": received,
        "received_at": timezone.now() if received else None,
    }
    fields.update(extra)
    return ThreadPurchase.objects.create(
        vendor=vendor,
        quantity=quantity,
        unit_price=unit_price,
        total_cost=quantity * unit_price,
        **fields,
    )


def create_dyeing_process(purchase, *, dye_quantity="50", output_quantity="45", **extra):
    fields = {
        "dye_date": timezone.now() - timedelta(days=1),
        "color_name": "Crimson",
        "color_code": "#DC143C",
        "labor_cost": Decimal("40"),
        "dye_material_cost": Decimal("50"),
        "total_cost": Decimal("90"),
        "result_status": DyeingProcess.PENDING,
    }
    fields.update(extra)
    return DyeingProcess.objects.create(
        thread_purchase=purchase,
        dye_quantity=Decimal(dye_quantity),
        output_quantity=Decimal(output_quantity),
        **fields,
    )


def create_bill(khata=None, *, amount="1000", bill_type=Bill.PURCHASE, number="PURCHASE-T-0001", **extra):
    khata = khata or Khata.objects.create(name="Test Khata")
    return Bill.objects.create(
        khata=khata,
        bill_number=number,
        bill_date=timezone.now(),
        amount=Decimal(amount),
        bill_type=bill_type,
        **extra,
    )
