import django.db.models.deletion
import django.db.models.functions.text
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("contenttypes", "0002_remove_content_type_name"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Vendor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("contact", models.CharField(blank=True, default="", max_length=255)),
                ("phone", models.CharField(blank=True, max_length=30, null=True)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("address", models.TextField(blank=True, null=True)),
                ("city", models.CharField(blank=True, max_length=100, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("contact", models.CharField(default="Unknown", max_length=255)),
                ("phone", models.CharField(blank=True, max_length=30, null=True)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("address", models.TextField(blank=True, null=True)),
                ("city", models.CharField(blank=True, max_length=100, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="ThreadType",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, null=True)),
                ("units", models.CharField(default="meters", max_length=30)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(
                        django.db.models.functions.text.Lower("name"),
                        name="unique_thread_type_name_ci",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ThreadPurchase",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("thread_type", models.CharField(max_length=255)),
                ("color", models.CharField(blank=True, max_length=100, null=True)),
                (
                    "color_status",
                    models.CharField(choices=[("RAW", "Raw"), ("COLORED", "Colored")], max_length=10),
                ),
                ("quantity", models.DecimalField(decimal_places=2, max_digits=12)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_cost", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("unit_of_measure", models.CharField(default="meters", max_length=30)),
                ("delivery_date", models.DateTimeField(blank=True, null=True)),
                ("received", models.BooleanField(default=False)),
                ("received_at", models.DateTimeField(blank=True, null=True)),
                ("remarks", models.TextField(blank=True, null=True)),
                ("reference", models.CharField(blank=True, max_length=100, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="thread_purchases",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="thread_purchases",
                        to="textile.vendor",
                    ),
                ),
            ],
            options={
                "ordering": ["-order_date"],
            },
        ),
        migrations.CreateModel(
            name="DyeingProcess",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("dye_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("completion_date", models.DateTimeField(blank=True, null=True)),
                ("dye_parameters", models.JSONField(blank=True, null=True)),
                ("color_code", models.CharField(blank=True, max_length=7, null=True)),
                ("color_name", models.CharField(blank=True, max_length=100, null=True)),
                ("dye_quantity", models.DecimalField(decimal_places=2, max_digits=12)),
                ("output_quantity", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("labor_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("dye_material_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("total_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                (
                    "result_status",
                    models.CharField(
                        choices=[
                            ("COMPLETED", "Completed"),
                            ("PARTIAL", "Partial"),
                            ("FAILED", "Failed"),
                            ("PENDING", "Pending"),
                        ],
                        default="PENDING",
                        max_length=10,
                    ),
                ),
                (
                    "inventory_status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("PENDING", "Pending"),
                            ("ADDED", "Added"),
                            ("UPDATED", "Updated"),
                            ("ERROR", "Error"),
                        ],
                        max_length=10,
                        null=True,
                    ),
                ),
                ("remarks", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "thread_purchase",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="dyeing_processes",
                        to="textile.threadpurchase",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Dyeing processes",
                "ordering": ["-dye_date"],
            },
        ),
        migrations.CreateModel(
            name="FabricProduction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("fabric_type", models.CharField(max_length=255)),
                ("dimensions", models.CharField(blank=True, default="", max_length=100)),
                ("batch_number", models.CharField(max_length=100)),
                ("quantity_produced", models.DecimalField(decimal_places=2, max_digits=12)),
                ("thread_usage", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("unit_of_measure", models.CharField(default="meters", max_length=30)),
                ("production_cost", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("labor_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("total_cost", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("production_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("completion_date", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("IN_PROGRESS", "In progress"),
                            ("COMPLETED", "Completed"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="PENDING",
                        max_length=12,
                    ),
                ),
                ("remarks", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "dyeing_process",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="fabric_productions",
                        to="textile.dyeingprocess",
                    ),
                ),
                (
                    "source_thread",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="fabric_productions",
                        to="textile.threadpurchase",
                    ),
                ),
            ],
            options={
                "ordering": ["-production_date"],
            },
        ),
        migrations.CreateModel(
            name="Inventory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("item_code", models.CharField(max_length=50, unique=True)),
                ("description", models.CharField(max_length=255)),
                (
                    "product_type",
                    models.CharField(choices=[("THREAD", "Thread"), ("FABRIC", "Fabric")], max_length=10),
                ),
                ("current_quantity", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("unit_of_measure", models.CharField(default="meters", max_length=30)),
                ("min_stock_level", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("cost_per_unit", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("sale_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("location", models.CharField(blank=True, max_length=100, null=True)),
                ("last_restocked", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "thread_type",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="inventory_items",
                        to="textile.threadtype",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Inventory",
                "ordering": ["item_code"],
            },
        ),
        migrations.CreateModel(
            name="SalesOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_number", models.CharField(max_length=50, unique=True)),
                ("order_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("delivery_date", models.DateTimeField(blank=True, null=True)),
                ("delivery_address", models.TextField(blank=True, null=True)),
                ("remarks", models.TextField(blank=True, null=True)),
                (
                    "payment_mode",
                    models.CharField(
                        blank=True,
                        choices=[("CASH", "Cash"), ("CHEQUE", "Cheque"), ("ONLINE", "Online")],
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("PAID", "Paid"),
                            ("PARTIAL", "Partial"),
                            ("PENDING", "Pending"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        max_length=10,
                    ),
                ),
                ("discount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("tax", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("total_sale", models.DecimalField(decimal_places=2, max_digits=14)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sales_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales_orders",
                        to="textile.customer",
                    ),
                ),
            ],
            options={
                "ordering": ["-order_date"],
            },
        ),
        migrations.CreateModel(
            name="InventoryTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("PURCHASE", "Purchase"),
                            ("PRODUCTION", "Production"),
                            ("SALES", "Sales"),
                            ("ADJUSTMENT", "Adjustment"),
                            ("TRANSFER", "Transfer"),
                        ],
                        max_length=12,
                    ),
                ),
                ("quantity", models.DecimalField(decimal_places=2, max_digits=12)),
                ("remaining_quantity", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("unit_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("total_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("reference_type", models.CharField(blank=True, max_length=50, null=True)),
                ("reference_id", models.PositiveIntegerField(blank=True, null=True)),
                ("transaction_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "dyeing_process",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inventory_transactions",
                        to="textile.dyeingprocess",
                    ),
                ),
                (
                    "fabric_production",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inventory_transactions",
                        to="textile.fabricproduction",
                    ),
                ),
                (
                    "inventory",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transactions",
                        to="textile.inventory",
                    ),
                ),
                (
                    "sales_order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="inventory_transactions",
                        to="textile.salesorder",
                    ),
                ),
                (
                    "thread_purchase",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inventory_transactions",
                        to="textile.threadpurchase",
                    ),
                ),
            ],
            options={
                "ordering": ["-transaction_date", "-id"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("transaction_type", "PRODUCTION")),
                        fields=("dyeing_process",),
                        name="unique_production_per_dyeing_process",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="SalesOrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "product_type",
                    models.CharField(choices=[("THREAD", "Thread"), ("FABRIC", "Fabric")], max_length=10),
                ),
                ("product_id", models.PositiveIntegerField()),
                ("quantity_sold", models.DecimalField(decimal_places=2, max_digits=12)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("discount", models.DecimalField(decimal_places=2, default=0, max_digits=5)),
                ("tax", models.DecimalField(decimal_places=2, default=0, max_digits=5)),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=14)),
                (
                    "fabric_production",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales_items",
                        to="textile.fabricproduction",
                    ),
                ),
                (
                    "inventory_item",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sales_items",
                        to="textile.inventory",
                    ),
                ),
                (
                    "sales_order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="textile.salesorder",
                    ),
                ),
                (
                    "thread_purchase",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales_items",
                        to="textile.threadpurchase",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("fabric_production__isnull", True),
                                ("product_type", "THREAD"),
                                ("thread_purchase__isnull", False),
                            ),
                            models.Q(
                                ("fabric_production__isnull", False),
                                ("product_type", "FABRIC"),
                                ("thread_purchase__isnull", True),
                            ),
                            _connector="OR",
                        ),
                        name="sales_item_single_product_source",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                (
                    "mode",
                    models.CharField(
                        choices=[("CASH", "Cash"), ("CHEQUE", "Cheque"), ("ONLINE", "Online")],
                        default="CASH",
                        max_length=10,
                    ),
                ),
                ("transaction_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("reference_number", models.CharField(blank=True, max_length=100, null=True)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("remarks", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "sales_order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="textile.salesorder",
                    ),
                ),
                (
                    "thread_purchase",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="textile.threadpurchase",
                    ),
                ),
            ],
            options={
                "ordering": ["-transaction_date"],
            },
        ),
        migrations.CreateModel(
            name="ChequeTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("cheque_number", models.CharField(max_length=50)),
                ("bank", models.CharField(max_length=100)),
                ("branch", models.CharField(blank=True, max_length=100, null=True)),
                ("cheque_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("issue_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("clearance_date", models.DateTimeField(blank=True, null=True)),
                (
                    "cheque_status",
                    models.CharField(
                        choices=[("PENDING", "Pending"), ("CLEARED", "Cleared"), ("BOUNCED", "Bounced")],
                        default="PENDING",
                        max_length=10,
                    ),
                ),
                ("remarks", models.TextField(blank=True, null=True)),
                (
                    "payment",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cheque_transaction",
                        to="textile.payment",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="Khata",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255, unique=True)),
                ("is_default", models.BooleanField(default=False)),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_default", True)),
                        fields=("is_default",),
                        name="single_default_khata",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Party",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255)),
                (
                    "party_type",
                    models.CharField(
                        choices=[
                            ("VENDOR", "Vendor"),
                            ("CUSTOMER", "Customer"),
                            ("EMPLOYEE", "Employee"),
                            ("OTHER", "Other"),
                        ],
                        max_length=10,
                    ),
                ),
                ("contact", models.CharField(blank=True, max_length=255, null=True)),
                ("phone_number", models.CharField(blank=True, max_length=30, null=True)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("address", models.TextField(blank=True, null=True)),
                ("city", models.CharField(blank=True, max_length=100, null=True)),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="ledger_parties",
                        to="textile.customer",
                    ),
                ),
                (
                    "khata",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="parties",
                        to="textile.khata",
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="ledger_parties",
                        to="textile.vendor",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Parties",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Bill",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("bill_number", models.CharField(max_length=50, unique=True)),
                ("bill_date", models.DateTimeField()),
                ("due_date", models.DateTimeField(blank=True, null=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("paid_amount", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                (
                    "bill_type",
                    models.CharField(
                        choices=[
                            ("PURCHASE", "Purchase"),
                            ("SALE", "Sale"),
                            ("EXPENSE", "Expense"),
                            ("INCOME", "Income"),
                            ("OTHER", "Other"),
                        ],
                        max_length=10,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PARTIAL", "Partial"),
                            ("PAID", "Paid"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="PENDING",
                        max_length=10,
                    ),
                ),
                (
                    "khata",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bills",
                        to="textile.khata",
                    ),
                ),
                (
                    "party",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bills",
                        to="textile.party",
                    ),
                ),
            ],
            options={
                "ordering": ["-bill_date", "-id"],
            },
        ),
        migrations.CreateModel(
            name="BankAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("account_name", models.CharField(max_length=255)),
                ("account_number", models.CharField(max_length=50)),
                ("bank_name", models.CharField(max_length=255)),
                ("branch_name", models.CharField(blank=True, max_length=255, null=True)),
                ("balance", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                (
                    "khata",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bankaccounts",
                        to="textile.khata",
                    ),
                ),
            ],
            options={
                "ordering": ["account_name"],
            },
        ),
        migrations.CreateModel(
            name="LedgerTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("PURCHASE", "Purchase"),
                            ("SALE", "Sale"),
                            ("BANK_DEPOSIT", "Bank deposit"),
                            ("BANK_WITHDRAWAL", "Bank withdrawal"),
                            ("CASH_PAYMENT", "Cash payment"),
                            ("CASH_RECEIPT", "Cash receipt"),
                            ("CHEQUE_PAYMENT", "Cheque payment"),
                            ("CHEQUE_RECEIPT", "Cheque receipt"),
                            ("CHEQUE_RETURN", "Cheque return"),
                            ("DYEING_EXPENSE", "Dyeing expense"),
                            ("INVENTORY_ADJUSTMENT", "Inventory adjustment"),
                            ("EXPENSE", "Expense"),
                            ("INCOME", "Income"),
                            ("TRANSFER", "Transfer"),
                            ("OTHER", "Other"),
                        ],
                        max_length=25,
                    ),
                ),
                ("transaction_date", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "bank_account",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="textile.bankaccount",
                    ),
                ),
                (
                    "bill",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="textile.bill",
                    ),
                ),
                (
                    "khata",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ledgertransactions",
                        to="textile.khata",
                    ),
                ),
                (
                    "party",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to="textile.party",
                    ),
                ),
            ],
            options={
                "ordering": ["-transaction_date", "-id"],
            },
        ),
        migrations.CreateModel(
            name="Cheque",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("cheque_number", models.CharField(max_length=50)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("issue_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("due_date", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("CLEARED", "Cleared"),
                            ("BOUNCED", "Bounced"),
                            ("REPLACED", "Replaced"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="PENDING",
                        max_length=10,
                    ),
                ),
                ("is_replacement", models.BooleanField(default=False)),
                ("remarks", models.TextField(blank=True, null=True)),
                (
                    "bank_account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cheques",
                        to="textile.bankaccount",
                    ),
                ),
                (
                    "bill",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="cheques",
                        to="textile.bill",
                    ),
                ),
                (
                    "replaced_cheque",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="replacements",
                        to="textile.cheque",
                    ),
                ),
            ],
            options={
                "ordering": ["-issue_date"],
            },
        ),
        migrations.CreateModel(
            name="Activity",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "action_type",
                    models.CharField(
                        choices=[("created", "Created"), ("updated", "Updated"), ("deleted", "Deleted")],
                        max_length=10,
                    ),
                ),
                ("description", models.CharField(max_length=255)),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
                ("object_id", models.PositiveIntegerField()),
                ("object_repr", models.TextField(blank=True, null=True)),
                (
                    "content_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        to="contenttypes.contenttype",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="activities",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Activities",
                "ordering": ["-timestamp"],
            },
        ),
    ]
