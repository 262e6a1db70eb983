# backend/textile/admin.py

from django.contrib import admin
from .models import (
    Activity,
    BankAccount,
    Bill,
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
    ThreadType,
    Vendor,
)


class SalesOrderItemInline(admin.TabularInline):
    model = SalesOrderItem
    extra = 0


@admin.register(SalesOrder)
class SalesOrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'customer', 'order_date', 'payment_status', 'total_sale')
    list_filter = ('payment_status', 'payment_mode')
    search_fields = ('order_number', 'customer__name')
    inlines = [SalesOrderItemInline]


@admin.register(Inventory)
class InventoryAdmin(admin.ModelAdmin):
    list_display = ('item_code', 'description', 'product_type', 'current_quantity', 'min_stock_level')
    list_filter = ('product_type',)
    search_fields = ('item_code', 'description')


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = ('bill_number', 'khata', 'bill_type', 'amount', 'paid_amount', 'status')
    list_filter = ('bill_type', 'status', 'khata')


admin.site.register(Activity)
admin.site.register(Vendor)
admin.site.register(Customer)
admin.site.register(ThreadType)
admin.site.register(ThreadPurchase)
admin.site.register(DyeingProcess)
admin.site.register(FabricProduction)
admin.site.register(InventoryTransaction)
admin.site.register(Payment)
admin.site.register(Khata)
admin.site.register(Party)
admin.site.register(BankAccount)
admin.site.register(LedgerTransaction)
admin.site.register(Cheque)
