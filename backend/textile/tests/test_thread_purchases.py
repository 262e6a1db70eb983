"""Thread purchase creation, listing and guarded deletion."""

from decimal import Decimal
from unittest.mock import Mock, patch

from django.test import TestCase

from ..models import (
    Activity,
    DyeingProcess,
    FabricProduction,
    Inventory,
    InventoryTransaction,
    Payment,
    ThreadPurchase,
    ThreadType,
    Vendor,
)
from ..services.inventory import add_purchase_to_inventory
from . import authenticated_client, create_dyeing_process, create_purchase


class ThreadPurchaseCreateTests(TestCase):
    def setUp(self):
        self.user, self.client = authenticated_client("buyer")
        self.vendor = Vendor.objects.create(name="Faisalabad Mills")

    def _payload(self, **overrides):
        payload = {
            'vendorId': self.vendor.id,
            'threadType': 'Cotton 40s',
            'colorStatus': 'RAW',
            'quantity': '100',
            'unitPrice': '10',
            'received': True,
            'addToInventory': True,
        }
        payload.update(overrides)
        return payload

    def test_received_purchase_is_added_to_inventory_with_markup(self):
        response = self.client.post('/api/thread/', self._payload(), format='json')
        self.assertEqual(response.status_code, 201, response.content)
        body = response.json()
        self.assertTrue(body['success'])

        purchase = ThreadPurchase.objects.get(pk=body['data']['id'])
        self.assertEqual(purchase.total_cost, Decimal('1000.00'))
        self.assertIsNotNone(purchase.received_at)
        self.assertEqual(purchase.created_by, self.user)

        item = Inventory.objects.get()
        self.assertTrue(item.item_code.startswith(f'THR-{purchase.id}-'))
        self.assertEqual(item.product_type, Inventory.THREAD)
        self.assertEqual(item.current_quantity, Decimal('100.00'))
        self.assertEqual(item.cost_per_unit, Decimal('10.00'))
        self.assertEqual(item.sale_price, Decimal('12.00'))
        self.assertEqual(item.min_stock_level, Decimal('100.00'))
        self.assertEqual(item.location, 'Warehouse')
        self.assertEqual(item.thread_type.name, 'Cotton 40s')

        movement = InventoryTransaction.objects.get()
        self.assertEqual(movement.transaction_type, InventoryTransaction.PURCHASE)
        self.assertEqual(movement.quantity, Decimal('100.00'))
        self.assertEqual(movement.remaining_quantity, Decimal('100.00'))
        self.assertEqual(movement.total_cost, Decimal('1000.00'))
        self.assertEqual(movement.thread_purchase, purchase)

    @patch('textile.services.inventory.add_purchase_to_inventory', side_effect=RuntimeError('disk full'))
    def test_inventory_failure_still_creates_purchase(self, mock_add: Mock):
        with self.assertLogs('textile.services.inventory', level='ERROR') as logs:
            response = self.client.post('/api/thread/', self._payload(), format='json')

        self.assertEqual(response.status_code, 201, response.content)
        mock_add.assert_called_once()
        purchase = ThreadPurchase.objects.get(pk=response.json()['data']['id'])
        self.assertEqual(purchase.total_cost, Decimal('1000.00'))
        self.assertFalse(Inventory.objects.exists())
        self.assertFalse(InventoryTransaction.objects.exists())
        self.assertIn(f'Failed to add thread purchase #{purchase.id} to inventory', logs.output[0])

    def test_unreceived_purchase_skips_inventory(self):
        response = self.client.post(
            '/api/thread/', self._payload(received=False), format='json'
        )
        self.assertEqual(response.status_code, 201, response.content)
        self.assertFalse(Inventory.objects.exists())
        self.assertFalse(InventoryTransaction.objects.exists())

    def test_optional_dyeing_process_and_payment(self):
        response = self.client.post(
            '/api/thread/',
            self._payload(
                addToInventory=False,
                createDyeingProcess=True,
                paymentAmount='250.00',
                paymentMode='CASH',
                paymentReference='RCPT-7',
            ),
            format='json',
        )
        self.assertEqual(response.status_code, 201, response.content)
        purchase = ThreadPurchase.objects.get()

        process = DyeingProcess.objects.get()
        self.assertEqual(process.thread_purchase, purchase)
        self.assertEqual(process.result_status, DyeingProcess.PENDING)
        self.assertEqual(process.dye_quantity, Decimal('100.00'))
        self.assertEqual(process.output_quantity, Decimal('0.00'))

        payment = Payment.objects.get()
        self.assertEqual(payment.amount, Decimal('250.00'))
        self.assertEqual(payment.mode, 'CASH')
        self.assertEqual(payment.reference_number, 'RCPT-7')
        self.assertEqual(payment.description, f'Payment for thread purchase #{purchase.id}')

        data = response.json()['data']
        self.assertTrue(data['hasDyeingProcess'])
        self.assertEqual(data['dyeingStatus'], 'PENDING')
        self.assertEqual(len(data['payments']), 1)

    def test_missing_fields_are_rejected(self):
        response = self.client.post(
            '/api/thread/', {'vendorId': self.vendor.id, 'quantity': '5'}, format='json'
        )
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertFalse(body['success'])
        self.assertEqual(body['error'], 'Missing required fields')
        self.assertFalse(ThreadPurchase.objects.exists())

    def test_update_recomputes_total_cost(self):
        purchase = create_purchase(self.vendor)
        response = self.client.patch(
            f'/api/thread/{purchase.id}/', {'quantity': '20', 'unitPrice': '7.50'}, format='json'
        )
        self.assertEqual(response.status_code, 200, response.content)
        purchase.refresh_from_db()
        self.assertEqual(purchase.total_cost, Decimal('150.00'))

    def test_thread_types_are_shared_case_insensitively(self):
        first = create_purchase(self.vendor, thread_type='Polyester 30s')
        second = create_purchase(self.vendor, thread_type='POLYESTER 30S')
        add_purchase_to_inventory(first)
        add_purchase_to_inventory(second)

        self.assertEqual(ThreadType.objects.count(), 1)
        self.assertEqual(Inventory.objects.count(), 2)


class ThreadPurchaseListTests(TestCase):
    def setUp(self):
        self.user, self.client = authenticated_client("lister")
        self.vendor = Vendor.objects.create(name="Karachi Yarns")
        self.other_vendor = Vendor.objects.create(name="Multan Spinners")
        self.raw = create_purchase(self.vendor, thread_type='Cotton 20s')
        self.colored = create_purchase(
            self.other_vendor, thread_type='Silk', color='Blue', color_status='COLORED'
        )
        self.pending = create_purchase(self.vendor, thread_type='Linen', received=False)
        create_dyeing_process(self.raw, result_status=DyeingProcess.COMPLETED, color_name='Teal')

    def test_filters_and_pagination(self):
        response = self.client.get('/api/thread/', {'colorStatus': 'RAW'})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['total'], 2)
        self.assertEqual({row['id'] for row in body['data']}, {self.raw.id, self.pending.id})

        body = self.client.get('/api/thread/', {'received': 'false'}).json()
        self.assertEqual([row['id'] for row in body['data']], [self.pending.id])

        body = self.client.get('/api/thread/', {'vendorId': self.other_vendor.id}).json()
        self.assertEqual([row['id'] for row in body['data']], [self.colored.id])

        body = self.client.get('/api/thread/', {'search': 'multan'}).json()
        self.assertEqual([row['id'] for row in body['data']], [self.colored.id])

        body = self.client.get('/api/thread/', {'page': 2, 'limit': 2}).json()
        self.assertEqual(body['total'], 3)
        self.assertEqual(body['page'], 2)
        self.assertEqual(body['limit'], 2)
        self.assertEqual(len(body['data']), 1)

    def test_rows_carry_latest_dyeing_summary(self):
        body = self.client.get('/api/thread/', {'search': 'Cotton 20s'}).json()
        row = body['data'][0]
        self.assertEqual(row['vendorName'], 'Karachi Yarns')
        self.assertTrue(row['hasDyeingProcess'])
        self.assertEqual(row['dyeingStatus'], 'COMPLETED')
        self.assertEqual(row['dyedColor'], 'Teal')
        self.assertTrue(row['dyeingCompleted'])

    def test_invalid_page_is_rejected(self):
        response = self.client.get('/api/thread/', {'page': 'two'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'page must be an integer')

    def test_unknown_purchase_returns_404_envelope(self):
        response = self.client.get('/api/thread/999999/')
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()['success'])


class ThreadPurchaseDeleteTests(TestCase):
    def setUp(self):
        self.user, self.client = authenticated_client("remover")
        self.purchase = create_purchase()

    def test_delete_removes_dependents(self):
        add_purchase_to_inventory(self.purchase)
        process = create_dyeing_process(self.purchase)
        Payment.objects.create(amount=Decimal('50'), thread_purchase=self.purchase)

        response = self.client.delete(f'/api/thread/{self.purchase.id}/')
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()['message'], 'Thread purchase deleted successfully')

        self.assertFalse(ThreadPurchase.objects.filter(pk=self.purchase.id).exists())
        self.assertFalse(DyeingProcess.objects.filter(pk=process.id).exists())
        self.assertFalse(Payment.objects.exists())
        self.assertFalse(InventoryTransaction.objects.exists())
        # The stock item itself outlives the purchase.
        self.assertEqual(Inventory.objects.count(), 1)

        activity = Activity.objects.get(action_type='deleted')
        self.assertIn('dyeing_processes', activity.object_repr)

    def test_delete_is_refused_when_used_in_fabric_production(self):
        process = create_dyeing_process(self.purchase)
        FabricProduction.objects.create(
            source_thread=self.purchase,
            dyeing_process=process,
            fabric_type='Lawn',
            batch_number='B-1',
            quantity_produced=Decimal('30'),
        )

        response = self.client.delete(f'/api/thread/{self.purchase.id}/')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()['error'],
            'Cannot delete thread purchase that has been used in fabric production',
        )
        self.assertTrue(ThreadPurchase.objects.filter(pk=self.purchase.id).exists())
        self.assertFalse(Activity.objects.filter(action_type='deleted').exists())
