"""Ledger storage strategies.

Views never touch khata or bill rows directly; they ask
:func:`get_ledger_store` for the store selected by
``settings.TEXTILE_LEDGER["BACKEND"]`` and call it.  ``"database"`` persists
through the ORM, ``"mock"`` serves fixed demo records.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from decimal import Decimal

from django.db import IntegrityError, transaction

from ..conf import ledger_setting
from ..exceptions import LedgerError, NotFoundError, ValidationFailed
from ..models import Bill, Khata

logger = logging.getLogger(__name__)

__all__ = [
    "DatabaseLedgerStore",
    "MockLedgerStore",
    "get_ledger_store",
    "serialize_bill",
    "serialize_khata",
]


def _iso(value):
    return value.isoformat() if value else None


def _amount(value) -> str:
    """Render a decimal without trailing zeros, e.g. ``25000.00`` as ``"25000"``."""

    return format(Decimal(value or 0).normalize(), "f")


def serialize_khata(khata: Khata) -> dict:
    return {
        "id": khata.pk,
        "name": khata.name,
        "description": khata.description,
        "createdAt": _iso(khata.created_at),
        "updatedAt": _iso(khata.updated_at),
    }


def serialize_bill(bill: Bill, *, include_transactions: bool = False) -> dict:
    data = {
        "id": bill.pk,
        "billNumber": bill.bill_number,
        "khataId": bill.khata_id,
        "partyId": bill.party_id,
        "partyName": bill.party.name if bill.party_id else None,
        "billDate": _iso(bill.bill_date),
        "dueDate": _iso(bill.due_date),
        "amount": _amount(bill.amount),
        "paidAmount": _amount(bill.paid_amount),
        "remainingAmount": _amount(bill.remaining_amount),
        "description": bill.description,
        "billType": bill.bill_type,
        "status": bill.status,
        "transactions": [],
        "createdAt": _iso(bill.created_at),
        "updatedAt": _iso(bill.updated_at),
    }
    if include_transactions:
        data["displayEntryType"] = bill.display_entry_type
        data["transactions"] = [
            {
                "id": txn.pk,
                "amount": _amount(txn.amount),
                "description": txn.description,
                "transactionType": txn.transaction_type,
                "transactionDate": _iso(txn.transaction_date),
            }
            for txn in bill.transactions.all()
        ]
    return data


def _page_meta(page: int, page_size: int, total: int) -> dict:
    return {
        "page": page,
        "pageSize": page_size,
        "total": total,
        "totalPages": math.ceil(total / page_size) if page_size else 0,
    }


class DatabaseLedgerStore:
    """Ledger store backed by the ``Khata`` and ``Bill`` tables."""

    name = "database"

    def ensure_default_khata(self) -> Khata | None:
        if Khata.objects.exists():
            return None
        khata, created = Khata.objects.get_or_create(
            is_default=True,
            defaults={
                "name": ledger_setting("DEFAULT_KHATA_NAME"),
                "description": ledger_setting("DEFAULT_KHATA_DESCRIPTION"),
            },
        )
        if created:
            logger.info("Created default khata %s", khata.name)
        return khata

    def list_khatas(self) -> list[dict]:
        try:
            self.ensure_default_khata()
        except IntegrityError:
            logger.warning("Default khata creation raced with another request")
        return [serialize_khata(khata) for khata in Khata.objects.order_by("name")]

    def create_khata(self, data: dict) -> dict:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationFailed("Khata name is required")
        try:
            with transaction.atomic():
                khata = Khata.objects.create(name=name, description=data.get("description"))
        except IntegrityError as exc:
            raise ValidationFailed(f"A khata named '{name}' already exists") from exc
        return serialize_khata(khata)

    def _bill_queryset(self, filters: dict):
        queryset = Bill.objects.select_related("party").order_by("-bill_date", "-id")
        if filters.get("khataId"):
            queryset = queryset.filter(khata_id=filters["khataId"])
        if filters.get("partyId"):
            queryset = queryset.filter(party_id=filters["partyId"])
        if filters.get("billType"):
            queryset = queryset.filter(bill_type=filters["billType"])
        if filters.get("status"):
            queryset = queryset.filter(status=filters["status"])
        if filters.get("startDate"):
            queryset = queryset.filter(bill_date__gte=filters["startDate"])
        if filters.get("endDate"):
            queryset = queryset.filter(bill_date__lte=filters["endDate"])
        return queryset

    def list_bills(self, filters: dict, page: int, page_size: int) -> dict:
        queryset = self._bill_queryset(filters)
        total = queryset.count()
        offset = (page - 1) * page_size
        bills = [serialize_bill(bill) for bill in queryset[offset:offset + page_size]]
        return {"bills": bills, "meta": _page_meta(page, page_size, total)}

    def _next_bill_number(self, bill_type: str, khata_id: int) -> tuple[str, int]:
        prefix = f"{bill_type}-{khata_id}-"
        sequence = Bill.objects.filter(khata_id=khata_id, bill_type=bill_type).count() + 1
        return prefix, sequence

    def create_bill(self, data: dict) -> dict:
        khata = Khata.objects.filter(pk=data["khata_id"]).first()
        if khata is None:
            raise NotFoundError("Khata not found")

        prefix, sequence = self._next_bill_number(data["bill_type"], khata.pk)
        for _ in range(25):
            bill_number = f"{prefix}{sequence:04d}"
            try:
                with transaction.atomic():
                    bill = Bill.objects.create(
                        bill_number=bill_number,
                        khata=khata,
                        party_id=data.get("party_id"),
                        bill_date=data["bill_date"],
                        due_date=data.get("due_date"),
                        amount=data["amount"],
                        paid_amount=Decimal("0"),
                        description=data.get("description") or f"{data['bill_type']} Bill",
                        bill_type=data["bill_type"],
                        status=Bill.PENDING,
                    )
                return serialize_bill(bill)
            except IntegrityError:
                sequence += 1
        raise LedgerError(
            "Could not allocate a unique bill number",
            operation="create",
            entity_type="bill",
        )

    def _get(self, bill_id) -> Bill:
        bill = Bill.objects.select_related("party").filter(pk=bill_id).first()
        if bill is None:
            raise NotFoundError("Ledger entry not found")
        return bill

    def get_bill(self, bill_id) -> dict:
        return serialize_bill(self._get(bill_id), include_transactions=True)

    def update_bill(self, bill_id, changes: dict) -> dict:
        with transaction.atomic():
            bill = self._get(bill_id)
            for field in ("status", "due_date", "description"):
                if field in changes:
                    setattr(bill, field, changes[field])
            bill.save()
        return serialize_bill(bill, include_transactions=True)

    def delete_bill(self, bill_id) -> None:
        bill = self._get(bill_id)
        if bill.transactions.exists():
            raise ValidationFailed("Cannot delete a bill with transactions. Cancel it instead.")
        bill.delete()


class MockLedgerStore:
    """Read-mostly store returning fixed demo records."""

    name = "mock"

    _STAMP = datetime(2024, 1, 1).isoformat()

    def _default_khata(self) -> dict:
        return {
            "id": 1,
            "name": ledger_setting("DEFAULT_KHATA_NAME"),
            "description": ledger_setting("DEFAULT_KHATA_DESCRIPTION"),
            "createdAt": self._STAMP,
            "updatedAt": self._STAMP,
        }

    def _bills(self) -> list[dict]:
        base = {
            "khataId": 1,
            "dueDate": None,
            "transactions": [],
            "createdAt": self._STAMP,
            "updatedAt": self._STAMP,
        }
        return [
            {
                **base,
                "id": 1,
                "billNumber": "BILL-001",
                "partyId": 1,
                "partyName": "Sample Vendor",
                "billDate": self._STAMP,
                "amount": "25000",
                "paidAmount": "0",
                "remainingAmount": "25000",
                "description": "Thread purchase",
                "billType": Bill.PURCHASE,
                "status": Bill.PENDING,
            },
            {
                **base,
                "id": 2,
                "billNumber": "BILL-002",
                "partyId": 2,
                "partyName": "Sample Customer",
                "billDate": self._STAMP,
                "amount": "35000",
                "paidAmount": "10000",
                "remainingAmount": "25000",
                "description": "Fabric sale",
                "billType": Bill.SALE,
                "status": Bill.PARTIAL,
            },
        ]

    def list_khatas(self) -> list[dict]:
        return [self._default_khata()]

    def create_khata(self, data: dict) -> dict:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationFailed("Khata name is required")
        return {**self._default_khata(), "id": 2, "name": name, "description": data.get("description")}

    def list_bills(self, filters: dict, page: int, page_size: int) -> dict:
        bills = self._bills()
        if filters.get("billType"):
            bills = [bill for bill in bills if bill["billType"] == filters["billType"]]
        if filters.get("status"):
            bills = [bill for bill in bills if bill["status"] == filters["status"]]
        offset = (page - 1) * page_size
        return {"bills": bills[offset:offset + page_size], "meta": _page_meta(page, page_size, len(bills))}

    def create_bill(self, data: dict) -> dict:
        bill_type = data["bill_type"]
        return {
            "id": 3,
            "billNumber": f"{bill_type}-{data['khata_id']}-0001",
            "khataId": data["khata_id"],
            "partyId": data.get("party_id"),
            "partyName": None,
            "billDate": _iso(data["bill_date"]),
            "dueDate": _iso(data.get("due_date")),
            "amount": _amount(data["amount"]),
            "paidAmount": "0",
            "remainingAmount": _amount(data["amount"]),
            "description": data.get("description") or f"{bill_type} Bill",
            "billType": bill_type,
            "status": Bill.PENDING,
            "transactions": [],
            "createdAt": self._STAMP,
            "updatedAt": self._STAMP,
        }

    def get_bill(self, bill_id) -> dict:
        for bill in self._bills():
            if str(bill["id"]) == str(bill_id):
                bill["displayEntryType"] = "RECEIVABLE" if bill["billType"] == Bill.SALE else "PAYABLE"
                return bill
        raise NotFoundError("Ledger entry not found")

    def update_bill(self, bill_id, changes: dict) -> dict:
        bill = self.get_bill(bill_id)
        if "status" in changes:
            bill["status"] = changes["status"]
        if "description" in changes:
            bill["description"] = changes["description"]
        return bill

    def delete_bill(self, bill_id) -> None:
        raise ValidationFailed("Ledger is running in mock mode; bills cannot be deleted")


LEDGER_STORES = {
    DatabaseLedgerStore.name: DatabaseLedgerStore,
    MockLedgerStore.name: MockLedgerStore,
}


def get_ledger_store():
    """Instantiate the ledger store named by the ``TEXTILE_LEDGER`` settings."""

    backend = ledger_setting("BACKEND")
    try:
        return LEDGER_STORES[backend]()
    except KeyError:
        raise LedgerError(f"Unknown ledger backend '{backend}'", operation="configure") from None
