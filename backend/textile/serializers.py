# backend/textile/serializers.py
import json
import re
from decimal import Decimal

from django.db import transaction
from django.utils import timezone
from rest_framework import serializers

from .exceptions import NotFoundError, ValidationFailed
from .models import (
    Bill,
    BankAccount,
    Cheque,
    Customer,
    DyeingProcess,
    FabricProduction,
    Inventory,
    InventoryTransaction,
    Khata,
    LedgerTransaction,
    Party,
    Payment,
    SalesOrder,
    SalesOrderItem,
    ThreadPurchase,
    Vendor,
)
from .services.inventory import (
    consume_thread_for_dyeing,
    find_or_create_thread_inventory,
    try_add_dyeing_output_to_inventory,
    try_add_purchase_to_inventory,
)
from .services.sales import line_subtotal, order_total

HEX_COLOR = re.compile(r'^#[0-9A-Fa-f]{6}$')


def money_field(source, **kwargs):
    kwargs.setdefault('required', False)
    return serializers.DecimalField(max_digits=14, decimal_places=2, source=source, **kwargs)


# --- Parties to production ------------------------------------------------


class VendorSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Vendor
        fields = ['id', 'name', 'contact', 'phone', 'email', 'address', 'city', 'notes', 'createdAt', 'updatedAt']


class CustomerSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Customer
        fields = ['id', 'name', 'contact', 'phone', 'email', 'address', 'city', 'notes', 'createdAt', 'updatedAt']


class PaymentSerializer(serializers.ModelSerializer):
    salesOrderId = serializers.IntegerField(source='sales_order_id', read_only=True)
    threadPurchaseId = serializers.IntegerField(source='thread_purchase_id', read_only=True)
    transactionDate = serializers.DateTimeField(source='transaction_date', read_only=True)
    referenceNumber = serializers.CharField(source='reference_number', read_only=True)
    chequeTransaction = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = [
            'id',
            'amount',
            'mode',
            'salesOrderId',
            'threadPurchaseId',
            'transactionDate',
            'referenceNumber',
            'description',
            'remarks',
            'chequeTransaction',
        ]

    def get_chequeTransaction(self, obj):
        cheque = getattr(obj, 'cheque_transaction', None)
        if cheque is None:
            return None
        return {
            'id': cheque.pk,
            'chequeNumber': cheque.cheque_number,
            'bank': cheque.bank,
            'branch': cheque.branch,
            'chequeAmount': cheque.cheque_amount,
            'chequeStatus': cheque.cheque_status,
            'issueDate': cheque.issue_date.isoformat() if cheque.issue_date else None,
        }


class InventoryTransactionSerializer(serializers.ModelSerializer):
    inventoryId = serializers.IntegerField(source='inventory_id', read_only=True)
    itemCode = serializers.CharField(source='inventory.item_code', read_only=True)
    transactionType = serializers.CharField(source='transaction_type', read_only=True)
    remainingQuantity = serializers.DecimalField(
        max_digits=12, decimal_places=2, source='remaining_quantity', read_only=True
    )
    unitCost = money_field('unit_cost', read_only=True)
    totalCost = money_field('total_cost', read_only=True)
    referenceType = serializers.CharField(source='reference_type', read_only=True)
    referenceId = serializers.IntegerField(source='reference_id', read_only=True)
    threadPurchaseId = serializers.IntegerField(source='thread_purchase_id', read_only=True)
    dyeingProcessId = serializers.IntegerField(source='dyeing_process_id', read_only=True)
    fabricProductionId = serializers.IntegerField(source='fabric_production_id', read_only=True)
    salesOrderId = serializers.IntegerField(source='sales_order_id', read_only=True)
    transactionDate = serializers.DateTimeField(source='transaction_date', read_only=True)

    class Meta:
        model = InventoryTransaction
        fields = [
            'id',
            'inventoryId',
            'itemCode',
            'transactionType',
            'quantity',
            'remainingQuantity',
            'unitCost',
            'totalCost',
            'referenceType',
            'referenceId',
            'threadPurchaseId',
            'dyeingProcessId',
            'fabricProductionId',
            'salesOrderId',
            'transactionDate',
            'notes',
        ]


class InventorySerializer(serializers.ModelSerializer):
    itemCode = serializers.CharField(source='item_code', read_only=True)
    productType = serializers.CharField(source='product_type', read_only=True)
    threadTypeId = serializers.IntegerField(source='thread_type_id', read_only=True)
    threadTypeName = serializers.CharField(source='thread_type.name', read_only=True, allow_null=True)
    currentQuantity = serializers.DecimalField(
        max_digits=12, decimal_places=2, source='current_quantity', read_only=True
    )
    unitOfMeasure = serializers.CharField(source='unit_of_measure', read_only=True)
    minStockLevel = serializers.DecimalField(
        max_digits=12, decimal_places=2, source='min_stock_level', read_only=True
    )
    costPerUnit = money_field('cost_per_unit', read_only=True)
    salePrice = money_field('sale_price', read_only=True)
    lastRestocked = serializers.DateTimeField(source='last_restocked', read_only=True)
    belowMinStock = serializers.BooleanField(source='is_below_min_stock', read_only=True)

    class Meta:
        model = Inventory
        fields = [
            'id',
            'itemCode',
            'description',
            'productType',
            'threadTypeId',
            'threadTypeName',
            'currentQuantity',
            'unitOfMeasure',
            'minStockLevel',
            'costPerUnit',
            'salePrice',
            'location',
            'lastRestocked',
            'notes',
            'belowMinStock',
        ]


# --- Thread purchases ------------------------------------------------------


class ThreadPurchaseReadSerializer(serializers.ModelSerializer):
    vendorId = serializers.IntegerField(source='vendor_id', read_only=True)
    vendorName = serializers.CharField(source='vendor.name', read_only=True)
    orderDate = serializers.DateTimeField(source='order_date', read_only=True)
    threadType = serializers.CharField(source='thread_type', read_only=True)
    colorStatus = serializers.CharField(source='color_status', read_only=True)
    unitPrice = money_field('unit_price', read_only=True)
    totalCost = money_field('total_cost', read_only=True)
    unitOfMeasure = serializers.CharField(source='unit_of_measure', read_only=True)
    deliveryDate = serializers.DateTimeField(source='delivery_date', read_only=True)
    receivedAt = serializers.DateTimeField(source='received_at', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)
    hasDyeingProcess = serializers.SerializerMethodField()
    dyeingProcessId = serializers.SerializerMethodField()
    dyeingStatus = serializers.SerializerMethodField()
    dyedColor = serializers.SerializerMethodField()
    dyeingCompleted = serializers.SerializerMethodField()

    class Meta:
        model = ThreadPurchase
        fields = [
            'id',
            'vendorId',
            'vendorName',
            'orderDate',
            'threadType',
            'color',
            'colorStatus',
            'quantity',
            'unitPrice',
            'totalCost',
            'unitOfMeasure',
            'deliveryDate',
            'received',
            'receivedAt',
            'remarks',
            'reference',
            'createdAt',
            'updatedAt',
            'hasDyeingProcess',
            'dyeingProcessId',
            'dyeingStatus',
            'dyedColor',
            'dyeingCompleted',
        ]

    def _latest_process(self, obj):
        cache = self.context.setdefault('_latest_dyeing', {})
        if obj.pk not in cache:
            processes = sorted(
                obj.dyeing_processes.all(),
                key=lambda process: (process.dye_date, process.pk),
                reverse=True,
            )
            cache[obj.pk] = processes[0] if processes else None
        return cache[obj.pk]

    def get_hasDyeingProcess(self, obj):
        return self._latest_process(obj) is not None

    def get_dyeingProcessId(self, obj):
        process = self._latest_process(obj)
        return process.pk if process else None

    def get_dyeingStatus(self, obj):
        process = self._latest_process(obj)
        return process.result_status if process else None

    def get_dyedColor(self, obj):
        process = self._latest_process(obj)
        return process.color_name if process else None

    def get_dyeingCompleted(self, obj):
        process = self._latest_process(obj)
        return bool(process and process.result_status == DyeingProcess.COMPLETED)


class FabricProductionSummarySerializer(serializers.ModelSerializer):
    fabricType = serializers.CharField(source='fabric_type', read_only=True)
    batchNumber = serializers.CharField(source='batch_number', read_only=True)
    quantityProduced = serializers.DecimalField(
        max_digits=12, decimal_places=2, source='quantity_produced', read_only=True
    )

    class Meta:
        model = FabricProduction
        fields = ['id', 'fabricType', 'batchNumber', 'quantityProduced', 'status']


class ThreadPurchaseDetailSerializer(ThreadPurchaseReadSerializer):
    vendor = VendorSerializer(read_only=True)
    dyeingProcesses = serializers.SerializerMethodField()
    payments = PaymentSerializer(many=True, read_only=True)
    inventoryTransactions = InventoryTransactionSerializer(
        source='inventory_transactions', many=True, read_only=True
    )
    fabricProductions = FabricProductionSummarySerializer(
        source='fabric_productions', many=True, read_only=True
    )

    class Meta(ThreadPurchaseReadSerializer.Meta):
        fields = ThreadPurchaseReadSerializer.Meta.fields + [
            'vendor',
            'dyeingProcesses',
            'payments',
            'inventoryTransactions',
            'fabricProductions',
        ]

    def get_dyeingProcesses(self, obj):
        return DyeingProcessReadSerializer(obj.dyeing_processes.all(), many=True).data


class ThreadPurchaseWriteSerializer(serializers.ModelSerializer):
    """Create or update a thread purchase and run its side effects."""

    REQUIRED_ON_CREATE = ('vendor', 'thread_type', 'color_status', 'quantity', 'unit_price')

    vendorId = serializers.PrimaryKeyRelatedField(
        source='vendor', queryset=Vendor.objects.all(), required=False
    )
    orderDate = serializers.DateTimeField(source='order_date', required=False)
    threadType = serializers.CharField(source='thread_type', required=False)
    colorStatus = serializers.ChoiceField(
        source='color_status', choices=ThreadPurchase.COLOR_STATUS_CHOICES, required=False
    )
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    unitPrice = money_field('unit_price')
    totalCost = money_field('total_cost')
    unitOfMeasure = serializers.CharField(source='unit_of_measure', required=False)
    deliveryDate = serializers.DateTimeField(source='delivery_date', required=False, allow_null=True)
    color = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    addToInventory = serializers.BooleanField(write_only=True, required=False, default=False)
    createDyeingProcess = serializers.BooleanField(write_only=True, required=False, default=False)
    paymentAmount = serializers.DecimalField(
        max_digits=14, decimal_places=2, write_only=True, required=False, allow_null=True
    )
    paymentMode = serializers.ChoiceField(
        choices=SalesOrder.PAYMENT_MODE_CHOICES, write_only=True, required=False, allow_null=True
    )
    paymentReference = serializers.CharField(write_only=True, required=False, allow_blank=True)
    paymentRemarks = serializers.CharField(write_only=True, required=False, allow_blank=True)
    paymentDate = serializers.DateTimeField(write_only=True, required=False)

    class Meta:
        model = ThreadPurchase
        fields = [
            'vendorId',
            'orderDate',
            'threadType',
            'color',
            'colorStatus',
            'quantity',
            'unitPrice',
            'totalCost',
            'unitOfMeasure',
            'deliveryDate',
            'received',
            'remarks',
            'reference',
            'addToInventory',
            'createDyeingProcess',
            'paymentAmount',
            'paymentMode',
            'paymentReference',
            'paymentRemarks',
            'paymentDate',
        ]
        extra_kwargs = {'received': {'required': False}}

    def validate(self, attrs):
        if self.instance is None:
            missing = [field for field in self.REQUIRED_ON_CREATE if attrs.get(field) in (None, '')]
            if missing:
                raise serializers.ValidationError('Missing required fields')
        return attrs

    def _pop_side_effects(self, validated_data):
        return {
            'add_to_inventory': validated_data.pop('addToInventory', False),
            'create_dyeing_process': validated_data.pop('createDyeingProcess', False),
            'payment_amount': validated_data.pop('paymentAmount', None),
            'payment_mode': validated_data.pop('paymentMode', None),
            'payment_reference': validated_data.pop('paymentReference', None),
            'payment_remarks': validated_data.pop('paymentRemarks', None),
            'payment_date': validated_data.pop('paymentDate', None),
        }

    def create(self, validated_data):
        effects = self._pop_side_effects(validated_data)
        validated_data.pop('total_cost', None)
        validated_data.setdefault('unit_of_measure', 'meters')
        quantity = Decimal(validated_data['quantity'])
        unit_price = Decimal(validated_data['unit_price'])

        with transaction.atomic():
            purchase = ThreadPurchase.objects.create(
                total_cost=quantity * unit_price,
                received_at=timezone.now() if validated_data.get('received') else None,
                **validated_data,
            )

            if purchase.received and effects['add_to_inventory']:
                try_add_purchase_to_inventory(purchase)

            if purchase.color_status == ThreadPurchase.RAW and effects['create_dyeing_process']:
                DyeingProcess.objects.create(
                    thread_purchase=purchase,
                    dye_date=timezone.now(),
                    dye_quantity=purchase.quantity,
                    output_quantity=Decimal('0'),
                    result_status=DyeingProcess.PENDING,
                )

            amount = effects['payment_amount']
            if amount and amount > 0 and effects['payment_mode']:
                Payment.objects.create(
                    amount=amount,
                    mode=effects['payment_mode'],
                    thread_purchase=purchase,
                    description=f"Payment for thread purchase #{purchase.pk}",
                    reference_number=effects['payment_reference'] or None,
                    remarks=effects['payment_remarks'] or None,
                    transaction_date=effects['payment_date'] or timezone.now(),
                )

        return purchase

    def update(self, instance, validated_data):
        self._pop_side_effects(validated_data)
        explicit_total = validated_data.pop('total_cost', None)
        was_received = instance.received

        for field, value in validated_data.items():
            setattr(instance, field, value)

        if explicit_total is not None:
            instance.total_cost = explicit_total
        else:
            instance.total_cost = Decimal(instance.quantity) * Decimal(instance.unit_price)
        if instance.received and not was_received and not instance.received_at:
            instance.received_at = timezone.now()
        instance.save()
        return instance


# --- Dyeing ----------------------------------------------------------------


def parse_dye_parameters(raw):
    """Accept a mapping or its JSON string form; anything else is rejected."""

    if raw in (None, ''):
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise serializers.ValidationError('Invalid dyeParameters format')
    if not isinstance(raw, dict):
        raise serializers.ValidationError('Invalid dyeParameters format')
    return raw


class DyeingProcessReadSerializer(serializers.ModelSerializer):
    threadPurchaseId = serializers.IntegerField(source='thread_purchase_id', read_only=True)
    dyeDate = serializers.DateTimeField(source='dye_date', read_only=True)
    completionDate = serializers.DateTimeField(source='completion_date', read_only=True)
    dyeParameters = serializers.JSONField(source='dye_parameters', read_only=True)
    colorCode = serializers.CharField(source='color_code', read_only=True)
    colorName = serializers.CharField(source='color_name', read_only=True)
    dyeQuantity = serializers.DecimalField(max_digits=12, decimal_places=2, source='dye_quantity', read_only=True)
    outputQuantity = serializers.DecimalField(
        max_digits=12, decimal_places=2, source='output_quantity', read_only=True
    )
    laborCost = money_field('labor_cost', read_only=True)
    dyeMaterialCost = money_field('dye_material_cost', read_only=True)
    totalCost = money_field('total_cost', read_only=True)
    resultStatus = serializers.CharField(source='result_status', read_only=True)
    inventoryStatus = serializers.CharField(source='inventory_status', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = DyeingProcess
        fields = [
            'id',
            'threadPurchaseId',
            'dyeDate',
            'completionDate',
            'dyeParameters',
            'colorCode',
            'colorName',
            'dyeQuantity',
            'outputQuantity',
            'laborCost',
            'dyeMaterialCost',
            'totalCost',
            'resultStatus',
            'inventoryStatus',
            'remarks',
            'createdAt',
            'updatedAt',
        ]


class DyeingProcessDetailSerializer(DyeingProcessReadSerializer):
    threadPurchase = ThreadPurchaseReadSerializer(source='thread_purchase', read_only=True)
    inventoryTransactions = InventoryTransactionSerializer(
        source='inventory_transactions', many=True, read_only=True
    )
    fabricProductions = FabricProductionSummarySerializer(
        source='fabric_productions', many=True, read_only=True
    )
    hasInventoryEntries = serializers.SerializerMethodField()
    hasFabricProductions = serializers.SerializerMethodField()

    class Meta(DyeingProcessReadSerializer.Meta):
        fields = DyeingProcessReadSerializer.Meta.fields + [
            'threadPurchase',
            'inventoryTransactions',
            'fabricProductions',
            'hasInventoryEntries',
            'hasFabricProductions',
        ]

    def get_hasInventoryEntries(self, obj):
        return obj.inventory_transactions.exists()

    def get_hasFabricProductions(self, obj):
        return obj.fabric_productions.exists()


class DyeingProcessCreateSerializer(serializers.Serializer):
    """Validate a new dyeing process and draw its thread out of stock."""

    threadPurchaseId = serializers.IntegerField(required=False)
    dyeDate = serializers.DateTimeField(required=False)
    completionDate = serializers.DateTimeField(required=False, allow_null=True)
    colorCode = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    colorName = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    dyeQuantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    outputQuantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    laborCost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    dyeMaterialCost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    totalCost = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    resultStatus = serializers.CharField(required=False)
    remarks = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    addToInventory = serializers.BooleanField(required=False, default=False)

    REQUIRED = ('threadPurchaseId', 'dyeDate', 'resultStatus', 'dyeQuantity', 'outputQuantity')

    def validate(self, attrs):
        if any(attrs.get(field) in (None, '') for field in self.REQUIRED):
            raise serializers.ValidationError('Missing required fields')
        if attrs['dyeQuantity'] <= 0:
            raise serializers.ValidationError('Dye quantity must be greater than 0')
        if attrs['outputQuantity'] < 0:
            raise serializers.ValidationError('Output quantity cannot be negative')
        if (attrs.get('laborCost') or 0) < 0 or (attrs.get('dyeMaterialCost') or 0) < 0:
            raise serializers.ValidationError('Costs cannot be negative')

        valid_statuses = [value for value, _ in DyeingProcess.RESULT_STATUS_CHOICES]
        if attrs['resultStatus'] not in valid_statuses:
            raise serializers.ValidationError(
                f"Invalid result status. Must be one of: {', '.join(valid_statuses)}"
            )
        color_code = attrs.get('colorCode')
        if color_code and not HEX_COLOR.match(color_code):
            raise serializers.ValidationError(
                'Invalid color code format. Must be a hex color code (e.g., #FF5733)'
            )
        if attrs['dyeDate'] > timezone.now():
            raise serializers.ValidationError('Dye date cannot be in the future')
        if attrs['resultStatus'] == DyeingProcess.COMPLETED and not attrs.get('completionDate'):
            raise serializers.ValidationError('Completion date is required when status is COMPLETED')
        attrs['dyeParameters'] = parse_dye_parameters(self.initial_data.get('dyeParameters'))
        if attrs['outputQuantity'] > attrs['dyeQuantity']:
            raise serializers.ValidationError('Output quantity cannot exceed dye quantity')
        return attrs

    def create(self, validated_data):
        purchase = (
            ThreadPurchase.objects.select_related('vendor')
            .filter(pk=validated_data['threadPurchaseId'])
            .first()
        )
        if purchase is None:
            raise NotFoundError('Thread purchase not found')
        if not purchase.received:
            raise ValidationFailed("Cannot create dyeing process for thread that hasn't been received yet")
        if purchase.color_status != ThreadPurchase.RAW:
            raise ValidationFailed('Can only dye thread with RAW color status')

        dye_quantity = validated_data['dyeQuantity']
        labor = validated_data.get('laborCost')
        material = validated_data.get('dyeMaterialCost')
        total_cost = validated_data.get('totalCost')
        if total_cost is None and (labor is not None or material is not None):
            total_cost = (labor or Decimal('0')) + (material or Decimal('0'))

        with transaction.atomic():
            stock = find_or_create_thread_inventory(purchase)
            if Decimal(stock.current_quantity) < dye_quantity:
                raise ValidationFailed(
                    f"Dye quantity ({dye_quantity}) cannot exceed the available inventory "
                    f"quantity ({stock.current_quantity})"
                )

            completed = validated_data['resultStatus'] == DyeingProcess.COMPLETED
            process = DyeingProcess.objects.create(
                thread_purchase=purchase,
                dye_date=validated_data['dyeDate'],
                completion_date=validated_data.get('completionDate'),
                dye_parameters=validated_data.get('dyeParameters'),
                color_code=validated_data.get('colorCode') or None,
                color_name=validated_data.get('colorName') or None,
                dye_quantity=dye_quantity,
                output_quantity=validated_data['outputQuantity'],
                labor_cost=labor,
                dye_material_cost=material,
                total_cost=total_cost,
                result_status=validated_data['resultStatus'],
                inventory_status=DyeingProcess.INVENTORY_PENDING,
                remarks=validated_data.get('remarks'),
            )
            self.inventory_summary = consume_thread_for_dyeing(stock, process)

            if completed:
                purchase.color_status = ThreadPurchase.COLORED
                purchase.save(update_fields=['color_status', 'updated_at'])
                if validated_data.get('addToInventory'):
                    try_add_dyeing_output_to_inventory(process)

        process.refresh_from_db()
        return process


class DyeingProcessUpdateSerializer(serializers.Serializer):
    """Partial update of a dyeing process; completion may stock its output."""

    FIELD_MAP = {
        'dyeDate': 'dye_date',
        'completionDate': 'completion_date',
        'colorCode': 'color_code',
        'colorName': 'color_name',
        'dyeQuantity': 'dye_quantity',
        'outputQuantity': 'output_quantity',
        'resultStatus': 'result_status',
        'remarks': 'remarks',
        'laborCost': 'labor_cost',
        'dyeMaterialCost': 'dye_material_cost',
    }

    dyeDate = serializers.DateTimeField(required=False)
    completionDate = serializers.DateTimeField(required=False, allow_null=True)
    colorCode = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    colorName = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    dyeQuantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    outputQuantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    laborCost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    dyeMaterialCost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    totalCost = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    resultStatus = serializers.ChoiceField(choices=DyeingProcess.RESULT_STATUS_CHOICES, required=False)
    remarks = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    addToInventory = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        color_code = attrs.get('colorCode')
        if color_code and not HEX_COLOR.match(color_code):
            raise serializers.ValidationError(
                'Invalid color code format. Must be a hex color code (e.g., #FF5733)'
            )
        if 'dyeParameters' in self.initial_data:
            attrs['dyeParameters'] = parse_dye_parameters(self.initial_data.get('dyeParameters'))
        return attrs

    def update(self, instance, validated_data):
        previous_status = instance.result_status

        for key, field in self.FIELD_MAP.items():
            if key in validated_data:
                setattr(instance, field, validated_data[key])
        if 'dyeParameters' in validated_data:
            instance.dye_parameters = validated_data['dyeParameters']

        if 'laborCost' in validated_data or 'dyeMaterialCost' in validated_data:
            labor = instance.labor_cost or Decimal('0')
            material = instance.dye_material_cost or Decimal('0')
            instance.total_cost = labor + material
        elif validated_data.get('totalCost') is not None:
            instance.total_cost = validated_data['totalCost']

        with transaction.atomic():
            instance.save()
            becomes_completed = (
                instance.result_status == DyeingProcess.COMPLETED
                and previous_status != DyeingProcess.COMPLETED
            )
            if validated_data.get('addToInventory') and becomes_completed:
                try_add_dyeing_output_to_inventory(instance)

        instance.refresh_from_db()
        return instance


# --- Fabric production -------------------------------------------------------


class FabricProductionSerializer(serializers.ModelSerializer):
    sourceThreadId = serializers.PrimaryKeyRelatedField(
        source='source_thread', queryset=ThreadPurchase.objects.all()
    )
    dyeingProcessId = serializers.PrimaryKeyRelatedField(
        source='dyeing_process',
        queryset=DyeingProcess.objects.all(),
        required=False,
        allow_null=True,
    )
    fabricType = serializers.CharField(source='fabric_type')
    batchNumber = serializers.CharField(source='batch_number')
    quantityProduced = serializers.DecimalField(max_digits=12, decimal_places=2, source='quantity_produced')
    threadUsage = serializers.DecimalField(
        max_digits=12, decimal_places=2, source='thread_usage', required=False
    )
    unitOfMeasure = serializers.CharField(source='unit_of_measure', required=False)
    productionCost = money_field('production_cost')
    laborCost = money_field('labor_cost', allow_null=True)
    totalCost = money_field('total_cost', read_only=True)
    productionDate = serializers.DateTimeField(source='production_date', required=False)
    completionDate = serializers.DateTimeField(source='completion_date', required=False, allow_null=True)

    class Meta:
        model = FabricProduction
        fields = [
            'id',
            'sourceThreadId',
            'dyeingProcessId',
            'fabricType',
            'dimensions',
            'batchNumber',
            'quantityProduced',
            'threadUsage',
            'unitOfMeasure',
            'productionCost',
            'laborCost',
            'totalCost',
            'productionDate',
            'completionDate',
            'status',
            'remarks',
        ]

    def validate(self, attrs):
        process = attrs.get('dyeing_process')
        source = attrs.get('source_thread') or getattr(self.instance, 'source_thread', None)
        if process is not None and source is not None and process.thread_purchase_id != source.pk:
            raise serializers.ValidationError('Dyeing process does not belong to the source thread purchase')
        return attrs


# --- Sales -------------------------------------------------------------------


class SalesOrderItemSerializer(serializers.ModelSerializer):
    productType = serializers.CharField(source='product_type', read_only=True)
    productId = serializers.IntegerField(source='product_id', read_only=True)
    productName = serializers.CharField(source='product_name', read_only=True)
    threadPurchaseId = serializers.IntegerField(source='thread_purchase_id', read_only=True)
    fabricProductionId = serializers.IntegerField(source='fabric_production_id', read_only=True)
    inventoryItemId = serializers.IntegerField(source='inventory_item_id', read_only=True)
    quantitySold = serializers.DecimalField(
        max_digits=12, decimal_places=2, source='quantity_sold', read_only=True
    )
    unitPrice = money_field('unit_price', read_only=True)

    class Meta:
        model = SalesOrderItem
        fields = [
            'id',
            'productType',
            'productId',
            'productName',
            'threadPurchaseId',
            'fabricProductionId',
            'inventoryItemId',
            'quantitySold',
            'unitPrice',
            'discount',
            'tax',
            'subtotal',
        ]


class SalesOrderReadSerializer(serializers.ModelSerializer):
    orderNumber = serializers.CharField(source='order_number', read_only=True)
    orderDate = serializers.DateTimeField(source='order_date', read_only=True)
    customerId = serializers.IntegerField(source='customer_id', read_only=True)
    customer = CustomerSerializer(read_only=True)
    deliveryDate = serializers.DateTimeField(source='delivery_date', read_only=True)
    deliveryAddress = serializers.CharField(source='delivery_address', read_only=True)
    paymentMode = serializers.CharField(source='payment_mode', read_only=True)
    paymentStatus = serializers.CharField(source='payment_status', read_only=True)
    totalSale = money_field('total_sale', read_only=True)
    items = SalesOrderItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = SalesOrder
        fields = [
            'id',
            'orderNumber',
            'orderDate',
            'customerId',
            'customer',
            'deliveryDate',
            'deliveryAddress',
            'remarks',
            'paymentMode',
            'paymentStatus',
            'discount',
            'tax',
            'totalSale',
            'items',
            'payments',
            'createdAt',
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        items = data['items']
        # Flattened product fields for screens that show one product per order.
        if len(items) == 1:
            item = items[0]
            data['productName'] = item['productName']
            data['productType'] = item['productType']
            data['unitPrice'] = item['unitPrice']
            data['quantitySold'] = item['quantitySold']
        elif items:
            data['productName'] = f"{len(items)} items"
            data['productType'] = 'MULTIPLE'
            data['unitPrice'] = None
            data['quantitySold'] = sum((Decimal(str(item['quantitySold'])) for item in items), Decimal('0'))
        return data


class SalesItemSubmissionSerializer(serializers.Serializer):
    productType = serializers.CharField(required=False, allow_blank=True)
    productId = serializers.IntegerField(required=False, allow_null=True)
    threadPurchaseId = serializers.IntegerField(required=False, allow_null=True)
    fabricProductionId = serializers.IntegerField(required=False, allow_null=True)
    inventoryItemId = serializers.IntegerField(required=False, allow_null=True)
    quantitySold = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    unitPrice = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    discount = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=Decimal('0'))
    tax = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=Decimal('0'))
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)


class SalesSubmissionSerializer(serializers.Serializer):
    """Validate a sales order submission before it is written."""

    customerName = serializers.CharField(required=False, allow_blank=True)
    customerId = serializers.IntegerField(required=False, allow_null=True)
    orderNumber = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    orderDate = serializers.DateTimeField(required=False)
    deliveryDate = serializers.DateTimeField(required=False, allow_null=True)
    deliveryAddress = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    remarks = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    paymentMode = serializers.ChoiceField(
        choices=SalesOrder.PAYMENT_MODE_CHOICES, required=False, allow_null=True
    )
    paymentStatus = serializers.ChoiceField(choices=SalesOrder.PAYMENT_STATUS_CHOICES)
    paymentAmount = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, default=Decimal('0')
    )
    discount = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=Decimal('0'))
    tax = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=Decimal('0'))
    totalSale = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    items = SalesItemSubmissionSerializer(many=True, required=False)
    updateInventory = serializers.BooleanField(required=False, default=False)
    chequeNumber = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    bank = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    branch = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    chequeRemarks = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def _validate_items(self, items):
        seen = set()
        for item in items:
            product_type = item.get('productType')
            if not product_type:
                raise serializers.ValidationError('All items must have a product type')
            if product_type not in (Inventory.THREAD, Inventory.FABRIC):
                raise serializers.ValidationError(f"Unknown product type: {product_type}")
            if not item.get('quantitySold') or item['quantitySold'] <= 0:
                raise serializers.ValidationError(
                    f"Invalid quantity for {product_type} item. Must be greater than 0."
                )
            if not item.get('unitPrice') or item['unitPrice'] <= 0:
                raise serializers.ValidationError(
                    f"Invalid price for {product_type} item. Must be greater than 0."
                )
            key = (product_type, item.get('productId'), item.get('inventoryItemId'))
            if key in seen:
                raise serializers.ValidationError(
                    f"Duplicate item detected: {product_type} with ID {item.get('productId')}. "
                    "Please combine quantities instead."
                )
            seen.add(key)

            calculated = line_subtotal(
                item['unitPrice'], item['quantitySold'], item.get('discount'), item.get('tax')
            )
            provided = item.get('subtotal')
            if provided is None or abs(calculated - provided) > Decimal('0.01'):
                item['subtotal'] = calculated

    def validate(self, attrs):
        if not (attrs.get('customerName') or '').strip():
            raise serializers.ValidationError('Customer name is required')
        items = attrs.get('items') or []
        if not items:
            raise serializers.ValidationError('At least one product item is required')
        self._validate_items(items)

        calculated_total = order_total(
            (item['subtotal'] for item in items), attrs.get('discount'), attrs.get('tax')
        )
        provided_total = attrs.get('totalSale')
        if provided_total is None:
            attrs['totalSale'] = provided_total = calculated_total
        elif abs(calculated_total - provided_total) > Decimal('5'):
            raise serializers.ValidationError(
                f"Total sale amount ({provided_total}) doesn't match the calculated sum of items "
                f"({calculated_total})"
            )
        if provided_total <= 0:
            raise serializers.ValidationError('Total sale amount must be greater than 0')

        payment_amount = attrs.get('paymentAmount') or Decimal('0')
        if payment_amount > provided_total:
            raise serializers.ValidationError('Payment amount cannot exceed total sale amount')
        status = attrs['paymentStatus']
        if status in (SalesOrder.PAID, SalesOrder.PARTIAL) and payment_amount <= 0:
            raise serializers.ValidationError(
                f"Payment amount is required for {status} status and must be greater than 0"
            )
        if attrs.get('paymentMode') == SalesOrder.CHEQUE:
            if not attrs.get('chequeNumber'):
                raise serializers.ValidationError('Cheque number is required for CHEQUE payment mode')
            if not attrs.get('bank'):
                raise serializers.ValidationError('Bank name is required for CHEQUE payment mode')

        now = timezone.now()
        delivery_date = attrs.get('deliveryDate')
        if delivery_date and timezone.localdate(delivery_date) < timezone.localdate(now):
            raise serializers.ValidationError('Delivery date cannot be in the past')
        order_date = attrs.get('orderDate') or now
        if order_date > now:
            raise serializers.ValidationError('Order date cannot be in the future')
        attrs['orderDate'] = order_date
        return attrs


class LegacySaleSerializer(serializers.Serializer):
    """Single-product sale body accepted by ``POST /api/sales/``."""

    REQUIRED = ('customerName', 'productType', 'productId', 'quantitySold', 'salePrice', 'paymentStatus')

    def to_submission(self):
        data = dict(self.initial_data)
        for field in self.REQUIRED:
            if not data.get(field):
                raise serializers.ValidationError(f"Missing required field: {field}")
        item = {
            'productType': data['productType'],
            'productId': data['productId'],
            'quantitySold': data['quantitySold'],
            'unitPrice': data['salePrice'],
            'discount': data.get('discount') or 0,
            'tax': data.get('tax') or 0,
        }
        for key in ('threadPurchaseId', 'fabricProductionId', 'inventoryItemId'):
            if data.get(key):
                item[key] = data[key]
        submission = {
            key: data[key]
            for key in (
                'customerName',
                'customerId',
                'orderNumber',
                'deliveryDate',
                'deliveryAddress',
                'remarks',
                'paymentMode',
                'paymentStatus',
                'chequeNumber',
                'bank',
                'branch',
                'updateInventory',
                'totalSale',
            )
            if data.get(key) not in (None, '')
        }
        submission['orderDate'] = data.get('orderDate') or timezone.now().isoformat()
        submission['paymentAmount'] = data.get('paymentAmount') or 0
        if data.get('chequeRemarks'):
            submission['chequeRemarks'] = data['chequeRemarks']
        submission['items'] = [item]
        return submission


# --- Ledger ------------------------------------------------------------------


class KhataSerializer(serializers.ModelSerializer):
    isDefault = serializers.BooleanField(source='is_default', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Khata
        fields = ['id', 'name', 'description', 'isDefault', 'createdAt', 'updatedAt']


class BillCreateSerializer(serializers.Serializer):
    """Collects every bill validation problem instead of stopping at the first."""

    @staticmethod
    def _parse_datetime(value):
        if not value:
            return None
        try:
            return serializers.DateTimeField().to_internal_value(value)
        except serializers.ValidationError:
            return None

    def validate_payload(self):
        data = self.initial_data
        errors = []
        cleaned = {}

        khata_id = data.get('khataId')
        if not khata_id:
            errors.append('Khata ID is required')
        else:
            try:
                cleaned['khata_id'] = int(khata_id)
            except (TypeError, ValueError):
                errors.append('Khata ID must be a number')

        bill_date = self._parse_datetime(data.get('billDate'))
        if bill_date is None:
            errors.append('Bill date is required' if not data.get('billDate') else 'Bill date is invalid')
        cleaned['bill_date'] = bill_date
        if data.get('dueDate'):
            due_date = self._parse_datetime(data['dueDate'])
            if due_date is None:
                errors.append('Due date is invalid')
            cleaned['due_date'] = due_date

        amount = data.get('amount')
        try:
            amount = Decimal(str(amount)) if amount not in (None, '') else None
        except ArithmeticError:
            amount = None
        if amount is None or amount < 0:
            errors.append('Amount must be a non-negative number')
        cleaned['amount'] = amount

        bill_type = data.get('billType')
        if not bill_type:
            errors.append('Bill type is required')
        elif bill_type not in dict(Bill.BILL_TYPE_CHOICES):
            errors.append(f"Invalid bill type: {bill_type}")
        cleaned['bill_type'] = bill_type

        paid = data.get('paidAmount')
        if paid not in (None, ''):
            try:
                paid = Decimal(str(paid))
            except ArithmeticError:
                paid = Decimal('-1')
            if paid < 0:
                errors.append('Paid amount cannot be negative')
            elif amount is not None and paid > amount:
                errors.append('Paid amount cannot exceed the bill amount')

        status = data.get('status')
        if status and status not in dict(Bill.STATUS_CHOICES):
            errors.append(f"Invalid status: {status}")

        if data.get('partyId'):
            cleaned['party_id'] = data['partyId']
        cleaned['description'] = data.get('description')
        return cleaned, errors


class BillUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Bill.STATUS_CHOICES, required=False)
    dueDate = serializers.DateTimeField(source='due_date', required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class KhataScopedSerializerMixin:
    """Take the khata from the nested route when the body does not name one."""

    def resolve_khata(self, attrs):
        if 'khata' not in attrs and self.instance is None:
            khata = self.context.get('khata')
            if khata is None:
                raise serializers.ValidationError('Khata is required')
            attrs['khata'] = khata
        return attrs


class PartySerializer(KhataScopedSerializerMixin, serializers.ModelSerializer):
    khataId = serializers.PrimaryKeyRelatedField(source='khata', queryset=Khata.objects.all(), required=False)
    partyType = serializers.ChoiceField(source='party_type', choices=Party.PARTY_TYPE_CHOICES)
    phoneNumber = serializers.CharField(source='phone_number', required=False, allow_null=True, allow_blank=True)
    customerId = serializers.PrimaryKeyRelatedField(
        source='customer', queryset=Customer.objects.all(), required=False, allow_null=True
    )
    vendorId = serializers.PrimaryKeyRelatedField(
        source='vendor', queryset=Vendor.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = Party
        fields = [
            'id',
            'name',
            'partyType',
            'khataId',
            'contact',
            'phoneNumber',
            'email',
            'address',
            'city',
            'description',
            'customerId',
            'vendorId',
        ]

    def validate(self, attrs):
        return self.resolve_khata(attrs)


class BankAccountSerializer(KhataScopedSerializerMixin, serializers.ModelSerializer):
    khataId = serializers.PrimaryKeyRelatedField(source='khata', queryset=Khata.objects.all(), required=False)
    accountName = serializers.CharField(source='account_name')
    accountNumber = serializers.CharField(source='account_number')
    bankName = serializers.CharField(source='bank_name')
    branchName = serializers.CharField(source='branch_name', required=False, allow_null=True, allow_blank=True)
    balance = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = BankAccount
        fields = [
            'id',
            'accountName',
            'accountNumber',
            'bankName',
            'branchName',
            'khataId',
            'balance',
            'description',
        ]

    def validate(self, attrs):
        return self.resolve_khata(attrs)


class LedgerTransactionSerializer(KhataScopedSerializerMixin, serializers.ModelSerializer):
    khataId = serializers.PrimaryKeyRelatedField(source='khata', queryset=Khata.objects.all(), required=False)
    partyId = serializers.PrimaryKeyRelatedField(
        source='party', queryset=Party.objects.all(), required=False, allow_null=True
    )
    billId = serializers.PrimaryKeyRelatedField(
        source='bill', queryset=Bill.objects.all(), required=False, allow_null=True
    )
    bankAccountId = serializers.PrimaryKeyRelatedField(
        source='bank_account', queryset=BankAccount.objects.all(), required=False, allow_null=True
    )
    transactionType = serializers.ChoiceField(
        source='transaction_type', choices=LedgerTransaction.TRANSACTION_TYPE_CHOICES
    )
    transactionDate = serializers.DateTimeField(source='transaction_date', required=False)
    description = serializers.CharField(required=False, allow_blank=True)

    class Meta:
        model = LedgerTransaction
        fields = [
            'id',
            'khataId',
            'partyId',
            'billId',
            'bankAccountId',
            'amount',
            'description',
            'transactionType',
            'transactionDate',
        ]

    def validate(self, attrs):
        attrs = self.resolve_khata(attrs)

        def current(field):
            if field in attrs:
                return attrs[field]
            return getattr(self.instance, field, None)

        amount = current('amount')
        if amount is None or amount <= 0:
            raise serializers.ValidationError('Transaction amount must be greater than 0')
        if not (current('description') or '').strip():
            raise serializers.ValidationError('Transaction description is required')
        if not any(current(field) for field in ('party', 'bill', 'bank_account')):
            raise serializers.ValidationError('Transaction must be linked to a party, bill or bank account')

        khata = current('khata')
        for field in ('party', 'bill', 'bank_account'):
            related = current(field)
            if related is not None and related.khata_id != khata.pk:
                raise serializers.ValidationError(f"{field.replace('_', ' ').capitalize()} belongs to a different khata")

        bill = current('bill')
        if bill is not None and bill.status == Bill.CANCELLED:
            raise serializers.ValidationError('Cannot record a transaction against a cancelled bill')
        return attrs


class ChequeSerializer(serializers.ModelSerializer):
    chequeNumber = serializers.CharField(source='cheque_number')
    bankAccountId = serializers.PrimaryKeyRelatedField(source='bank_account', queryset=BankAccount.objects.all())
    billId = serializers.PrimaryKeyRelatedField(
        source='bill', queryset=Bill.objects.all(), required=False, allow_null=True
    )
    issueDate = serializers.DateTimeField(source='issue_date', required=False)
    dueDate = serializers.DateTimeField(source='due_date', required=False, allow_null=True)
    isReplacement = serializers.BooleanField(source='is_replacement', required=False)
    replacedChequeId = serializers.PrimaryKeyRelatedField(
        source='replaced_cheque', queryset=Cheque.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = Cheque
        fields = [
            'id',
            'chequeNumber',
            'bankAccountId',
            'billId',
            'amount',
            'issueDate',
            'dueDate',
            'status',
            'isReplacement',
            'replacedChequeId',
            'description',
            'remarks',
        ]

    def validate(self, attrs):
        if attrs.get('amount') is not None and attrs['amount'] <= 0:
            raise serializers.ValidationError('Cheque amount must be greater than 0')
        if attrs.get('replaced_cheque') is not None:
            attrs['is_replacement'] = True
        return attrs

    def create(self, validated_data):
        with transaction.atomic():
            cheque = super().create(validated_data)
            replaced = cheque.replaced_cheque
            if replaced is not None and replaced.status != Cheque.REPLACED:
                replaced.status = Cheque.REPLACED
                replaced.save(update_fields=['status', 'updated_at'])
        return cheque
