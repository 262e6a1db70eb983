# backend/textile/models.py
import random
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from django.contrib.auth.models import User
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import IntegrityError, models, transaction
from django.db.models import Q
from django.db.models.functions import Lower
from django.utils import timezone

from .services import movements


class Activity(models.Model):
    ACTION_TYPES = (
        ('created', 'Created'),
        ('updated', 'Updated'),
        ('deleted', 'Deleted'),
    )

    user = models.ForeignKey(
        User, on_delete=models.SET_NULL, related_name='activities', null=True, blank=True
    )
    action_type = models.CharField(max_length=10, choices=ACTION_TYPES)
    description = models.CharField(max_length=255)
    timestamp = models.DateTimeField(auto_now_add=True)

    # Generic relationship to the object that was acted upon
    content_type = models.ForeignKey(ContentType, on_delete=models.CASCADE)
    object_id = models.PositiveIntegerField()
    content_object = GenericForeignKey('content_type', 'object_id')

    # Serialized snapshot kept for "deleted" actions
    object_repr = models.TextField(blank=True, null=True)

    class Meta:
        ordering = ['-timestamp']
        verbose_name_plural = 'Activities'

    def __str__(self):
        username = self.user.username if self.user_id else 'system'
        return f'{username} {self.action_type} - {self.description}'


class Vendor(models.Model):
    name = models.CharField(max_length=255)
    contact = models.CharField(max_length=255, blank=True, default='')
    phone = models.CharField(max_length=30, blank=True, null=True)
    email = models.EmailField(max_length=254, blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Customer(models.Model):
    name = models.CharField(max_length=255)
    contact = models.CharField(max_length=255, default='Unknown')
    phone = models.CharField(max_length=30, blank=True, null=True)
    email = models.EmailField(max_length=254, blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class ThreadType(models.Model):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    units = models.CharField(max_length=30, default='meters')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(Lower('name'), name='unique_thread_type_name_ci'),
        ]

    def __str__(self):
        return self.name

    @classmethod
    def resolve(cls, name: str, *, units: str, description: str | None = None) -> "ThreadType":
        """Return the thread type matching ``name`` case-insensitively, creating it if needed."""

        existing = cls.objects.filter(name__iexact=name).first()
        if existing:
            return existing
        try:
            with transaction.atomic():
                return cls.objects.create(name=name, units=units, description=description)
        except IntegrityError:
            return cls.objects.get(name__iexact=name)


class ThreadPurchase(models.Model):
    RAW = 'RAW'
    COLORED = 'COLORED'

    COLOR_STATUS_CHOICES = [
        (RAW, 'Raw'),
        (COLORED, 'Colored'),
    ]

    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT, related_name='thread_purchases')
    order_date = models.DateTimeField(default=timezone.now)
    thread_type = models.CharField(max_length=255)
    color = models.CharField(max_length=100, blank=True, null=True)
    color_status = models.CharField(max_length=10, choices=COLOR_STATUS_CHOICES)
    quantity = models.DecimalField(max_digits=12, decimal_places=2)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    unit_of_measure = models.CharField(max_length=30, default='meters')
    delivery_date = models.DateTimeField(blank=True, null=True)
    received = models.BooleanField(default=False)
    received_at = models.DateTimeField(blank=True, null=True)
    remarks = models.TextField(blank=True, null=True)
    reference = models.CharField(max_length=100, blank=True, null=True)
    created_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, related_name='thread_purchases', null=True, blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-order_date']

    def __str__(self):
        return f"Thread purchase #{self.pk} ({self.thread_type})"

    def latest_dyeing_process(self):
        return self.dyeing_processes.order_by('-dye_date', '-id').first()


class DyeingProcess(models.Model):
    PENDING = 'PENDING'
    COMPLETED = 'COMPLETED'
    PARTIAL = 'PARTIAL'
    FAILED = 'FAILED'

    RESULT_STATUS_CHOICES = [
        (COMPLETED, 'Completed'),
        (PARTIAL, 'Partial'),
        (FAILED, 'Failed'),
        (PENDING, 'Pending'),
    ]

    INVENTORY_PENDING = 'PENDING'
    INVENTORY_ADDED = 'ADDED'
    INVENTORY_UPDATED = 'UPDATED'
    INVENTORY_ERROR = 'ERROR'

    INVENTORY_STATUS_CHOICES = [
        (INVENTORY_PENDING, 'Pending'),
        (INVENTORY_ADDED, 'Added'),
        (INVENTORY_UPDATED, 'Updated'),
        (INVENTORY_ERROR, 'Error'),
    ]

    thread_purchase = models.ForeignKey(
        ThreadPurchase, on_delete=models.CASCADE, related_name='dyeing_processes'
    )
    dye_date = models.DateTimeField(default=timezone.now)
    completion_date = models.DateTimeField(blank=True, null=True)
    dye_parameters = models.JSONField(blank=True, null=True)
    color_code = models.CharField(max_length=7, blank=True, null=True)
    color_name = models.CharField(max_length=100, blank=True, null=True)
    dye_quantity = models.DecimalField(max_digits=12, decimal_places=2)
    output_quantity = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    labor_cost = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    dye_material_cost = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, blank=True, null=True)
    result_status = models.CharField(max_length=10, choices=RESULT_STATUS_CHOICES, default=PENDING)
    inventory_status = models.CharField(
        max_length=10, choices=INVENTORY_STATUS_CHOICES, blank=True, null=True
    )
    remarks = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-dye_date']
        verbose_name_plural = 'Dyeing processes'

    def __str__(self):
        return f"Dyeing process #{self.pk} for purchase #{self.thread_purchase_id}"

    @property
    def wastage(self) -> Decimal:
        return Decimal(self.dye_quantity or 0) - Decimal(self.output_quantity or 0)


class FabricProduction(models.Model):
    PENDING = 'PENDING'
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (IN_PROGRESS, 'In progress'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
    ]

    source_thread = models.ForeignKey(
        ThreadPurchase, on_delete=models.PROTECT, related_name='fabric_productions'
    )
    dyeing_process = models.ForeignKey(
        DyeingProcess,
        on_delete=models.PROTECT,
        related_name='fabric_productions',
        null=True,
        blank=True,
    )
    fabric_type = models.CharField(max_length=255)
    dimensions = models.CharField(max_length=100, blank=True, default='')
    batch_number = models.CharField(max_length=100)
    quantity_produced = models.DecimalField(max_digits=12, decimal_places=2)
    thread_usage = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    unit_of_measure = models.CharField(max_length=30, default='meters')
    production_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    labor_cost = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    production_date = models.DateTimeField(default=timezone.now)
    completion_date = models.DateTimeField(blank=True, null=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=PENDING)
    remarks = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-production_date']

    def __str__(self):
        return f"{self.fabric_type} batch {self.batch_number}"

    def save(self, *args, **kwargs):
        self.total_cost = Decimal(self.production_cost or 0) + Decimal(self.labor_cost or 0)
        super().save(*args, **kwargs)


class Inventory(models.Model):
    THREAD = 'THREAD'
    FABRIC = 'FABRIC'

    PRODUCT_TYPE_CHOICES = [
        (THREAD, 'Thread'),
        (FABRIC, 'Fabric'),
    ]

    item_code = models.CharField(max_length=50, unique=True)
    description = models.CharField(max_length=255)
    product_type = models.CharField(max_length=10, choices=PRODUCT_TYPE_CHOICES)
    thread_type = models.ForeignKey(
        ThreadType,
        on_delete=models.SET_NULL,
        related_name='inventory_items',
        null=True,
        blank=True,
    )
    current_quantity = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    unit_of_measure = models.CharField(max_length=30, default='meters')
    min_stock_level = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    cost_per_unit = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    sale_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    location = models.CharField(max_length=100, blank=True, null=True)
    last_restocked = models.DateTimeField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['item_code']
        verbose_name_plural = 'Inventory'

    def __str__(self):
        return f"{self.item_code} - {self.description}"

    @property
    def is_below_min_stock(self) -> bool:
        return Decimal(self.current_quantity) < Decimal(self.min_stock_level)

    @staticmethod
    def timestamp_suffix() -> str:
        """Return the last six digits of the current millisecond timestamp."""

        millis = int(datetime.now(dt_timezone.utc).timestamp() * 1000)
        return str(millis)[-6:]


class InventoryTransaction(models.Model):
    PURCHASE = 'PURCHASE'
    PRODUCTION = 'PRODUCTION'
    SALES = 'SALES'
    ADJUSTMENT = 'ADJUSTMENT'
    TRANSFER = 'TRANSFER'

    TRANSACTION_TYPE_CHOICES = [
        (PURCHASE, 'Purchase'),
        (PRODUCTION, 'Production'),
        (SALES, 'Sales'),
        (ADJUSTMENT, 'Adjustment'),
        (TRANSFER, 'Transfer'),
    ]

    inventory = models.ForeignKey(Inventory, on_delete=models.CASCADE, related_name='transactions')
    transaction_type = models.CharField(max_length=12, choices=TRANSACTION_TYPE_CHOICES)
    quantity = models.DecimalField(max_digits=12, decimal_places=2)
    remaining_quantity = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, blank=True, null=True)
    reference_type = models.CharField(max_length=50, blank=True, null=True)
    reference_id = models.PositiveIntegerField(blank=True, null=True)
    thread_purchase = models.ForeignKey(
        ThreadPurchase,
        on_delete=models.CASCADE,
        related_name='inventory_transactions',
        null=True,
        blank=True,
    )
    dyeing_process = models.ForeignKey(
        DyeingProcess,
        on_delete=models.CASCADE,
        related_name='inventory_transactions',
        null=True,
        blank=True,
    )
    fabric_production = models.ForeignKey(
        FabricProduction,
        on_delete=models.CASCADE,
        related_name='inventory_transactions',
        null=True,
        blank=True,
    )
    sales_order = models.ForeignKey(
        'SalesOrder',
        on_delete=models.SET_NULL,
        related_name='inventory_transactions',
        null=True,
        blank=True,
    )
    transaction_date = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-transaction_date', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['dyeing_process'],
                condition=Q(transaction_type='PRODUCTION'),
                name='unique_production_per_dyeing_process',
            ),
        ]

    def __str__(self):
        return f"{self.get_transaction_type_display()} {self.quantity} of {self.inventory.item_code}"


class SalesOrder(models.Model):
    CASH = 'CASH'
    CHEQUE = 'CHEQUE'
    ONLINE = 'ONLINE'

    PAYMENT_MODE_CHOICES = [
        (CASH, 'Cash'),
        (CHEQUE, 'Cheque'),
        (ONLINE, 'Online'),
    ]

    PAID = 'PAID'
    PARTIAL = 'PARTIAL'
    PENDING = 'PENDING'
    CANCELLED = 'CANCELLED'

    PAYMENT_STATUS_CHOICES = [
        (PAID, 'Paid'),
        (PARTIAL, 'Partial'),
        (PENDING, 'Pending'),
        (CANCELLED, 'Cancelled'),
    ]

    order_number = models.CharField(max_length=50, unique=True)
    order_date = models.DateTimeField(default=timezone.now)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='sales_orders')
    delivery_date = models.DateTimeField(blank=True, null=True)
    delivery_address = models.TextField(blank=True, null=True)
    remarks = models.TextField(blank=True, null=True)
    payment_mode = models.CharField(max_length=10, choices=PAYMENT_MODE_CHOICES, blank=True, null=True)
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_sale = models.DecimalField(max_digits=14, decimal_places=2)
    created_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, related_name='sales_orders', null=True, blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-order_date']

    def __str__(self):
        return f"Sales order {self.order_number}"

    @staticmethod
    def generate_order_number() -> str:
        """Return an ``SO-<timestamp>-<random>`` order number."""

        stamp = datetime.now(dt_timezone.utc).strftime('%Y%m%d%H%M%S')
        return f"SO-{stamp}-{random.randint(0, 9999):04d}"


class SalesOrderItem(models.Model):
    sales_order = models.ForeignKey(SalesOrder, on_delete=models.CASCADE, related_name='items')
    product_type = models.CharField(max_length=10, choices=Inventory.PRODUCT_TYPE_CHOICES)
    product_id = models.PositiveIntegerField()
    thread_purchase = models.ForeignKey(
        ThreadPurchase,
        on_delete=models.PROTECT,
        related_name='sales_items',
        null=True,
        blank=True,
    )
    fabric_production = models.ForeignKey(
        FabricProduction,
        on_delete=models.PROTECT,
        related_name='sales_items',
        null=True,
        blank=True,
    )
    inventory_item = models.ForeignKey(
        Inventory,
        on_delete=models.SET_NULL,
        related_name='sales_items',
        null=True,
        blank=True,
    )
    quantity_sold = models.DecimalField(max_digits=12, decimal_places=2)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    discount = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    tax = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    subtotal = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(product_type='THREAD', thread_purchase__isnull=False, fabric_production__isnull=True)
                    | Q(product_type='FABRIC', fabric_production__isnull=False, thread_purchase__isnull=True)
                ),
                name='sales_item_single_product_source',
            ),
        ]

    def __str__(self):
        return f"{self.quantity_sold} x {self.product_type} #{self.product_id}"

    @property
    def product_name(self) -> str:
        if self.thread_purchase_id:
            thread = self.thread_purchase
            return f"{thread.thread_type} - {thread.color or 'Raw'}"
        if self.fabric_production_id:
            fabric = self.fabric_production
            return f"{fabric.fabric_type} ({fabric.batch_number})"
        return self.product_type


class Payment(models.Model):
    MODE_CHOICES = SalesOrder.PAYMENT_MODE_CHOICES

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    mode = models.CharField(max_length=10, choices=MODE_CHOICES, default=SalesOrder.CASH)
    sales_order = models.ForeignKey(
        SalesOrder, on_delete=models.CASCADE, related_name='payments', null=True, blank=True
    )
    thread_purchase = models.ForeignKey(
        ThreadPurchase, on_delete=models.CASCADE, related_name='payments', null=True, blank=True
    )
    transaction_date = models.DateTimeField(default=timezone.now)
    reference_number = models.CharField(max_length=100, blank=True, null=True)
    description = models.CharField(max_length=255, blank=True, default='')
    remarks = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-transaction_date']

    def __str__(self):
        return f"Payment of {self.amount} ({self.mode})"


class ChequeTransaction(models.Model):
    PENDING = 'PENDING'
    CLEARED = 'CLEARED'
    BOUNCED = 'BOUNCED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (CLEARED, 'Cleared'),
        (BOUNCED, 'Bounced'),
    ]

    payment = models.OneToOneField(Payment, on_delete=models.CASCADE, related_name='cheque_transaction')
    cheque_number = models.CharField(max_length=50)
    bank = models.CharField(max_length=100)
    branch = models.CharField(max_length=100, blank=True, null=True)
    cheque_amount = models.DecimalField(max_digits=14, decimal_places=2)
    issue_date = models.DateTimeField(default=timezone.now)
    clearance_date = models.DateTimeField(blank=True, null=True)
    cheque_status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING)
    remarks = models.TextField(blank=True, null=True)

    def __str__(self):
        return f"Cheque {self.cheque_number} ({self.bank})"


# --- Ledger --------------------------------------------------------------


class LedgerEntry(models.Model):
    """Fields shared by every ledger record."""

    description = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Khata(LedgerEntry):
    """A named account book grouping parties, bills and transactions."""

    name = models.CharField(max_length=255, unique=True)
    is_default = models.BooleanField(default=False)

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(
                fields=['is_default'],
                condition=Q(is_default=True),
                name='single_default_khata',
            ),
        ]

    def __str__(self):
        return self.name


class KhataScopedEntry(LedgerEntry):
    khata = models.ForeignKey(Khata, on_delete=models.CASCADE, related_name='%(class)ss')

    class Meta:
        abstract = True


class Party(KhataScopedEntry):
    VENDOR = 'VENDOR'
    CUSTOMER = 'CUSTOMER'
    EMPLOYEE = 'EMPLOYEE'
    OTHER = 'OTHER'

    PARTY_TYPE_CHOICES = [
        (VENDOR, 'Vendor'),
        (CUSTOMER, 'Customer'),
        (EMPLOYEE, 'Employee'),
        (OTHER, 'Other'),
    ]

    khata = models.ForeignKey(Khata, on_delete=models.CASCADE, related_name='parties')
    name = models.CharField(max_length=255)
    party_type = models.CharField(max_length=10, choices=PARTY_TYPE_CHOICES)
    contact = models.CharField(max_length=255, blank=True, null=True)
    phone_number = models.CharField(max_length=30, blank=True, null=True)
    email = models.EmailField(max_length=254, blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    customer = models.ForeignKey(
        Customer, on_delete=models.SET_NULL, related_name='ledger_parties', null=True, blank=True
    )
    vendor = models.ForeignKey(
        Vendor, on_delete=models.SET_NULL, related_name='ledger_parties', null=True, blank=True
    )

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'Parties'

    def __str__(self):
        return self.name


class Bill(KhataScopedEntry):
    PURCHASE = 'PURCHASE'
    SALE = 'SALE'
    EXPENSE = 'EXPENSE'
    INCOME = 'INCOME'
    OTHER = 'OTHER'

    BILL_TYPE_CHOICES = [
        (PURCHASE, 'Purchase'),
        (SALE, 'Sale'),
        (EXPENSE, 'Expense'),
        (INCOME, 'Income'),
        (OTHER, 'Other'),
    ]

    PENDING = 'PENDING'
    PARTIAL = 'PARTIAL'
    PAID = 'PAID'
    CANCELLED = 'CANCELLED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (PARTIAL, 'Partial'),
        (PAID, 'Paid'),
        (CANCELLED, 'Cancelled'),
    ]

    bill_number = models.CharField(max_length=50, unique=True)
    party = models.ForeignKey(Party, on_delete=models.SET_NULL, related_name='bills', null=True, blank=True)
    bill_date = models.DateTimeField()
    due_date = models.DateTimeField(blank=True, null=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    bill_type = models.CharField(max_length=10, choices=BILL_TYPE_CHOICES)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING)

    class Meta:
        ordering = ['-bill_date', '-id']

    def __str__(self):
        return self.bill_number

    @property
    def remaining_amount(self) -> Decimal:
        return Decimal(self.amount) - Decimal(self.paid_amount or 0)

    @property
    def display_entry_type(self) -> str:
        return 'RECEIVABLE' if self.bill_type == self.SALE else 'PAYABLE'

    def status_for_paid_amount(self) -> str:
        """Return the status implied by ``paid_amount`` unless the bill is cancelled."""

        if self.status == self.CANCELLED:
            return self.CANCELLED
        paid = Decimal(self.paid_amount or 0)
        if paid <= 0:
            return self.PENDING
        if paid >= Decimal(self.amount):
            return self.PAID
        return self.PARTIAL


class BankAccount(KhataScopedEntry):
    account_name = models.CharField(max_length=255)
    account_number = models.CharField(max_length=50)
    bank_name = models.CharField(max_length=255)
    branch_name = models.CharField(max_length=255, blank=True, null=True)
    balance = models.DecimalField(max_digits=14, decimal_places=2, default=0)

    class Meta:
        ordering = ['account_name']

    def __str__(self):
        return f"{self.account_name} ({self.bank_name})"


class LedgerTransaction(KhataScopedEntry):
    PURCHASE = 'PURCHASE'
    SALE = 'SALE'
    BANK_DEPOSIT = 'BANK_DEPOSIT'
    BANK_WITHDRAWAL = 'BANK_WITHDRAWAL'
    CASH_PAYMENT = 'CASH_PAYMENT'
    CASH_RECEIPT = 'CASH_RECEIPT'
    CHEQUE_PAYMENT = 'CHEQUE_PAYMENT'
    CHEQUE_RECEIPT = 'CHEQUE_RECEIPT'
    CHEQUE_RETURN = 'CHEQUE_RETURN'
    DYEING_EXPENSE = 'DYEING_EXPENSE'
    INVENTORY_ADJUSTMENT = 'INVENTORY_ADJUSTMENT'
    EXPENSE = 'EXPENSE'
    INCOME = 'INCOME'
    TRANSFER = 'TRANSFER'
    OTHER = 'OTHER'

    TRANSACTION_TYPE_CHOICES = [
        (PURCHASE, 'Purchase'),
        (SALE, 'Sale'),
        (BANK_DEPOSIT, 'Bank deposit'),
        (BANK_WITHDRAWAL, 'Bank withdrawal'),
        (CASH_PAYMENT, 'Cash payment'),
        (CASH_RECEIPT, 'Cash receipt'),
        (CHEQUE_PAYMENT, 'Cheque payment'),
        (CHEQUE_RECEIPT, 'Cheque receipt'),
        (CHEQUE_RETURN, 'Cheque return'),
        (DYEING_EXPENSE, 'Dyeing expense'),
        (INVENTORY_ADJUSTMENT, 'Inventory adjustment'),
        (EXPENSE, 'Expense'),
        (INCOME, 'Income'),
        (TRANSFER, 'Transfer'),
        (OTHER, 'Other'),
    ]

    # Bank balance direction per transaction type; types not listed leave it untouched.
    INFLOW_TYPES = {BANK_DEPOSIT, CASH_RECEIPT, CHEQUE_RECEIPT, SALE, INCOME}
    OUTFLOW_TYPES = {
        BANK_WITHDRAWAL,
        CASH_PAYMENT,
        CHEQUE_PAYMENT,
        CHEQUE_RETURN,
        PURCHASE,
        EXPENSE,
        DYEING_EXPENSE,
    }

    party = models.ForeignKey(
        Party, on_delete=models.SET_NULL, related_name='transactions', null=True, blank=True
    )
    bill = models.ForeignKey(
        Bill, on_delete=models.PROTECT, related_name='transactions', null=True, blank=True
    )
    bank_account = models.ForeignKey(
        BankAccount, on_delete=models.PROTECT, related_name='transactions', null=True, blank=True
    )
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    transaction_type = models.CharField(max_length=25, choices=TRANSACTION_TYPE_CHOICES)
    transaction_date = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-transaction_date', '-id']

    def __str__(self):
        return f"{self.get_transaction_type_display()} of {self.amount}"

    def bank_delta(self) -> Decimal:
        amount = Decimal(self.amount or 0)
        if self.transaction_type in self.INFLOW_TYPES:
            return amount
        if self.transaction_type in self.OUTFLOW_TYPES:
            return -amount
        return Decimal('0')

    def bill_delta(self) -> Decimal:
        amount = Decimal(self.amount or 0)
        if self.transaction_type == self.CHEQUE_RETURN:
            return -amount
        return amount

    def _apply(self, sign: int) -> None:
        if self.bill_id:
            movements.apply_bill_payment(self.bill_id, sign * self.bill_delta())
        if self.bank_account_id:
            movements.apply_bank_account_movement(self.bank_account_id, sign * self.bank_delta())

    def save(self, *args, **kwargs):
        with transaction.atomic():
            if self.pk:
                old = LedgerTransaction.objects.select_for_update().get(pk=self.pk)
                old._apply(-1)
            self._apply(1)
            super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        with transaction.atomic():
            self._apply(-1)
            return super().delete(*args, **kwargs)


class Cheque(LedgerEntry):
    PENDING = 'PENDING'
    CLEARED = 'CLEARED'
    BOUNCED = 'BOUNCED'
    REPLACED = 'REPLACED'
    CANCELLED = 'CANCELLED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (CLEARED, 'Cleared'),
        (BOUNCED, 'Bounced'),
        (REPLACED, 'Replaced'),
        (CANCELLED, 'Cancelled'),
    ]

    cheque_number = models.CharField(max_length=50)
    bank_account = models.ForeignKey(BankAccount, on_delete=models.CASCADE, related_name='cheques')
    bill = models.ForeignKey(Bill, on_delete=models.SET_NULL, related_name='cheques', null=True, blank=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    issue_date = models.DateTimeField(default=timezone.now)
    due_date = models.DateTimeField(blank=True, null=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING)
    is_replacement = models.BooleanField(default=False)
    replaced_cheque = models.ForeignKey(
        'self', on_delete=models.SET_NULL, related_name='replacements', null=True, blank=True
    )
    remarks = models.TextField(blank=True, null=True)

    class Meta:
        ordering = ['-issue_date']

    def __str__(self):
        return f"Cheque {self.cheque_number}"
