"""Inventory listing, reports and the stock recalculation command."""

from decimal import Decimal
from io import BytesIO, StringIO

from django.core.management import call_command
from django.test import TestCase
from openpyxl import load_workbook

from ..models import Customer, Inventory, InventoryTransaction, SalesOrder
from ..services.inventory import add_purchase_to_inventory, record_sale_movement
from ..services.movements import apply_stock_movement, to_money
from . import authenticated_client, create_purchase


class StockMovementTests(TestCase):
    def setUp(self):
        self.item = add_purchase_to_inventory(create_purchase(quantity='20')).inventory

    def test_to_money_rounds_half_up(self):
        self.assertEqual(to_money('2.345'), Decimal('2.35'))
        self.assertEqual(to_money(None), Decimal('0.00'))

    def test_floor_at_zero_when_negative_not_allowed(self):
        remaining = apply_stock_movement(self.item.id, Decimal('-50'), allow_negative=False)
        self.assertEqual(remaining, Decimal('0.00'))

    def test_sale_movement_below_minimum_is_allowed(self):
        order = SalesOrder.objects.create(
            order_number='SO-STOCK-1',
            customer=Customer.objects.create(name='Retail'),
            payment_status=SalesOrder.PENDING,
            total_sale=Decimal('60'),
        )
        with self.assertLogs('textile.services.inventory', level='WARNING'):
            movement = record_sale_movement(self.item.id, '5', order)
        self.assertEqual(movement.remaining_quantity, Decimal('15.00'))
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal('15.00'))


class InventoryEndpointTests(TestCase):
    def setUp(self):
        self.user, self.client = authenticated_client("storekeeper")
        self.low = add_purchase_to_inventory(create_purchase(quantity='40', thread_type='Viscose')).inventory
        self.high = add_purchase_to_inventory(create_purchase(quantity='400', thread_type='Nylon')).inventory

    def test_list_and_low_stock_filter(self):
        data = self.client.get('/api/inventory/').json()['data']
        self.assertEqual(len(data), 2)

        data = self.client.get('/api/inventory/', {'lowStock': 'true'}).json()['data']
        self.assertEqual([row['id'] for row in data], [self.low.id])
        self.assertTrue(data[0]['belowMinStock'])

        data = self.client.get('/api/inventory/', {'search': 'nylon'}).json()['data']
        self.assertEqual([row['id'] for row in data], [self.high.id])

    def test_item_transactions(self):
        data = self.client.get(f'/api/inventory/{self.low.id}/transactions/').json()['data']
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]['transactionType'], 'PURCHASE')
        self.assertEqual(data[0]['itemCode'], self.low.item_code)

    def test_inventory_is_read_only(self):
        response = self.client.post('/api/inventory/', {'itemCode': 'X'}, format='json')
        self.assertEqual(response.status_code, 405)

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get('/api/inventory/')
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.json()['success'])


class ReportExportTests(TestCase):
    def setUp(self):
        self.user, self.client = authenticated_client("reporter")
        self.item = add_purchase_to_inventory(create_purchase(quantity='50')).inventory
        self.order = SalesOrder.objects.create(
            order_number='SO-REPORT-1',
            customer=Customer.objects.create(name='Acme Corp'),
            payment_status=SalesOrder.PAID,
            total_sale=Decimal('250.00'),
        )
        self.order_day = self.order.order_date.strftime('%Y-%m-%d')

    def _workbook(self, response):
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(
            response['Content-Type'],
            'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        )
        self.assertIn('attachment;', response['Content-Disposition'])
        return load_workbook(BytesIO(response.content)).active

    def test_sales_report_excel(self):
        response = self.client.get(
            '/api/reports/sales/',
            {'start_date': self.order_day, 'end_date': self.order_day, 'export_format': 'xlsx'},
        )
        sheet = self._workbook(response)
        self.assertEqual(sheet['A1'].value, 'Sales Report')
        rows = [row for row in sheet.iter_rows(values_only=True)]
        self.assertIn('SO-REPORT-1', [row[2] for row in rows])
        self.assertEqual(rows[-1][3], 'Grand Total')
        self.assertEqual(rows[-1][6], 250.0)

    def test_sales_report_json(self):
        response = self.client.get(
            '/api/reports/sales/', {'start_date': self.order_day, 'end_date': self.order_day}
        )
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual([row['orderNumber'] for row in response.json()['data']], ['SO-REPORT-1'])

    def test_inventory_report_excel_highlights_low_stock(self):
        sheet = self._workbook(self.client.get('/api/reports/inventory/', {'export_format': 'excel'}))
        self.assertEqual(sheet['A1'].value, 'Inventory Report')
        item_row = next(row for row in sheet.iter_rows() if row[0].value == self.item.item_code)
        self.assertEqual(item_row[3].value, 50.0)
        self.assertEqual(item_row[0].fill.start_color.rgb[-6:], 'FCE4D6')


class RecalculateStockCommandTests(TestCase):
    def setUp(self):
        self.item = add_purchase_to_inventory(create_purchase(quantity='30')).inventory
        InventoryTransaction.objects.create(
            inventory=self.item,
            transaction_type=InventoryTransaction.ADJUSTMENT,
            quantity=Decimal('-5'),
        )

    def test_dry_run_leaves_quantities(self):
        out = StringIO()
        call_command('recalculate_stock', '--dry-run', stdout=out)
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal('30.00'))
        self.assertIn('1 inventory items recalculated (dry run)', out.getvalue())

    def test_quantities_match_transactions(self):
        out = StringIO()
        call_command('recalculate_stock', stdout=out)
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal('25.00'))
        self.assertIn(f'Inventory {self.item.item_code} quantity updated to 25', out.getvalue())

        Inventory.objects.filter(pk=self.item.pk).update(current_quantity=Decimal('25'))
        out = StringIO()
        call_command('recalculate_stock', stdout=out)
        self.assertIn('0 inventory items recalculated', out.getvalue())
