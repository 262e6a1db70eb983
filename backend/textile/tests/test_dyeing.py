"""Dyeing process creation, completion stocking and deletion."""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import Mock, patch

from django.test import TestCase
from django.utils import timezone

from ..models import (
    DyeingProcess,
    FabricProduction,
    Inventory,
    InventoryTransaction,
    ThreadPurchase,
    ThreadType,
)
from ..services.inventory import add_dyeing_output_to_inventory
from . import authenticated_client, create_dyeing_process, create_purchase


def _yesterday():
    return (timezone.now() - timedelta(days=1)).isoformat()


class DyeingProcessCreateTests(TestCase):
    def setUp(self):
        self.user, self.client = authenticated_client("dyer")
        self.purchase = create_purchase()

    def _payload(self, drop=(), **overrides):
        payload = {
            'threadPurchaseId': self.purchase.id,
            'dyeDate': _yesterday(),
            'completionDate': _yesterday(),
            'resultStatus': 'COMPLETED',
            'dyeQuantity': '40',
            'outputQuantity': '36',
            'laborCost': '100',
            'dyeMaterialCost': '80',
            'colorName': 'Crimson',
            'colorCode': '#DC143C',
            'dyeParameters': '{"temperature": 90}',
            'addToInventory': True,
        }
        payload.update(overrides)
        for key in drop:
            payload.pop(key)
        return payload

    def test_completed_process_draws_stock_and_adds_output(self):
        response = self.client.post('/api/dyeing/process/', self._payload(), format='json')
        self.assertEqual(response.status_code, 201, response.content)
        data = response.json()['data']

        self.assertEqual(data['inventory'], {'before': 100.0, 'used': 40.0, 'remaining': 60.0})
        self.assertEqual(data['wastage'], {'amount': 4.0, 'percentage': 10.0})
        self.assertEqual(data['process']['dyeParameters'], {'temperature': 90})
        self.assertEqual(data['process']['inventoryStatus'], 'ADDED')

        process = DyeingProcess.objects.get()
        self.assertEqual(process.total_cost, Decimal('180.00'))
        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.color_status, ThreadPurchase.COLORED)

        raw_stock = Inventory.objects.get(item_code__startswith=f'TH-{self.purchase.id}-')
        self.assertEqual(raw_stock.current_quantity, Decimal('60.00'))
        drawdown = InventoryTransaction.objects.get(transaction_type=InventoryTransaction.ADJUSTMENT)
        self.assertEqual(drawdown.quantity, Decimal('-40.00'))
        self.assertEqual(drawdown.remaining_quantity, Decimal('60.00'))
        self.assertEqual(drawdown.reference_id, process.id)

        dyed = Inventory.objects.get(item_code__startswith=f'DT-{process.id}-')
        self.assertEqual(dyed.current_quantity, Decimal('36.00'))
        self.assertEqual(dyed.cost_per_unit, Decimal('5.00'))
        self.assertEqual(dyed.sale_price, Decimal('6.25'))
        self.assertEqual(dyed.min_stock_level, Decimal('4.00'))
        self.assertEqual(dyed.description, 'Cotton 40s - Crimson (#DC143C)')
        self.assertEqual(ThreadType.objects.count(), 1)

        production = InventoryTransaction.objects.get(transaction_type=InventoryTransaction.PRODUCTION)
        self.assertEqual(production.dyeing_process, process)
        self.assertEqual(production.quantity, Decimal('36.00'))

    def test_pending_process_leaves_purchase_raw(self):
        response = self.client.post(
            '/api/dyeing/process/',
            self._payload(resultStatus='PENDING', completionDate=None, outputQuantity='0'),
            format='json',
        )
        self.assertEqual(response.status_code, 201, response.content)
        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.color_status, ThreadPurchase.RAW)
        self.assertFalse(
            InventoryTransaction.objects.filter(transaction_type=InventoryTransaction.PRODUCTION).exists()
        )

    def test_dye_quantity_cannot_exceed_stock(self):
        response = self.client.post(
            '/api/dyeing/process/', self._payload(dyeQuantity='150', outputQuantity='140'), format='json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('cannot exceed the available inventory quantity', response.json()['error'])
        self.assertFalse(DyeingProcess.objects.exists())
        self.assertFalse(Inventory.objects.exists())

    def test_purchase_must_be_received_and_raw(self):
        pending = create_purchase(self.purchase.vendor, received=False)
        response = self.client.post(
            '/api/dyeing/process/', self._payload(threadPurchaseId=pending.id), format='json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()['error'],
            "Cannot create dyeing process for thread that hasn't been received yet",
        )

        colored = create_purchase(self.purchase.vendor, color_status=ThreadPurchase.COLORED)
        response = self.client.post(
            '/api/dyeing/process/', self._payload(threadPurchaseId=colored.id), format='json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Can only dye thread with RAW color status')

        response = self.client.post(
            '/api/dyeing/process/', self._payload(threadPurchaseId=999999), format='json'
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'Thread purchase not found')

    def test_field_validation_messages(self):
        cases = [
            ({'drop': ['dyeQuantity']}, 'Missing required fields'),
            ({'dyeQuantity': '0'}, 'Dye quantity must be greater than 0'),
            ({'outputQuantity': '-1'}, 'Output quantity cannot be negative'),
            ({'laborCost': '-5'}, 'Costs cannot be negative'),
            ({'colorCode': 'red'}, 'Invalid color code format. Must be a hex color code (e.g., #FF5733)'),
            ({'completionDate': None}, 'Completion date is required when status is COMPLETED'),
            ({'dyeParameters': 'not json'}, 'Invalid dyeParameters format'),
            ({'outputQuantity': '41'}, 'Output quantity cannot exceed dye quantity'),
            (
                {'dyeDate': (timezone.now() + timedelta(days=2)).isoformat()},
                'Dye date cannot be in the future',
            ),
        ]
        for overrides, message in cases:
            with self.subTest(message=message):
                response = self.client.post(
                    '/api/dyeing/process/', self._payload(**overrides), format='json'
                )
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()['error'], message)
        self.assertFalse(DyeingProcess.objects.exists())

    def test_invalid_status_lists_allowed_values(self):
        response = self.client.post(
            '/api/dyeing/process/', self._payload(resultStatus='DONE'), format='json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()['error'],
            'Invalid result status. Must be one of: COMPLETED, PARTIAL, FAILED, PENDING',
        )


class DyeingCompletionTests(TestCase):
    def setUp(self):
        self.user, self.client = authenticated_client("finisher")
        self.purchase = create_purchase()
        self.process = create_dyeing_process(self.purchase)

    def _complete(self):
        return self.client.patch(
            f'/api/dyeing/process/{self.process.id}/',
            {
                'resultStatus': 'COMPLETED',
                'completionDate': timezone.now().isoformat(),
                'addToInventory': True,
            },
            format='json',
        )

    def _production_movements(self):
        return InventoryTransaction.objects.filter(
            dyeing_process=self.process, transaction_type=InventoryTransaction.PRODUCTION
        )

    def test_completing_twice_stocks_output_once(self):
        response = self._complete()
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()['data']['inventoryStatus'], 'ADDED')

        response = self._complete()
        self.assertEqual(response.status_code, 200, response.content)

        self.assertEqual(self._production_movements().count(), 1)
        item = self._production_movements().get().inventory
        self.assertEqual(item.current_quantity, Decimal('45.00'))
        self.assertEqual(item.cost_per_unit, Decimal('2.00'))
        self.assertEqual(item.sale_price, Decimal('2.50'))

    def test_service_is_idempotent(self):
        first = add_dyeing_output_to_inventory(self.process)
        second = add_dyeing_output_to_inventory(self.process)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(self._production_movements().count(), 1)
        self.assertEqual(Inventory.objects.count(), 1)

    def test_cost_fields_recompute_total(self):
        response = self.client.patch(
            f'/api/dyeing/process/{self.process.id}/', {'laborCost': '60'}, format='json'
        )
        self.assertEqual(response.status_code, 200, response.content)
        self.process.refresh_from_db()
        self.assertEqual(self.process.total_cost, Decimal('110.00'))

    def test_update_without_flag_does_not_stock(self):
        response = self.client.patch(
            f'/api/dyeing/process/{self.process.id}/', {'resultStatus': 'COMPLETED'}, format='json'
        )
        self.assertEqual(response.status_code, 200, response.content)
        self.assertFalse(self._production_movements().exists())

    @patch('textile.services.inventory.add_dyeing_output_to_inventory', side_effect=RuntimeError('lock timeout'))
    def test_stocking_failure_marks_process_error(self, mock_add: Mock):
        with self.assertLogs('textile.services.inventory', level='ERROR'):
            response = self._complete()

        self.assertEqual(response.status_code, 200, response.content)
        mock_add.assert_called_once()
        data = response.json()['data']
        self.assertEqual(data['resultStatus'], 'COMPLETED')
        self.assertEqual(data['inventoryStatus'], 'ERROR')
        self.assertFalse(self._production_movements().exists())

    def test_inexact_unit_cost_keeps_process_total(self):
        process = create_dyeing_process(
            self.purchase,
            output_quantity='3',
            labor_cost=Decimal('40'),
            dye_material_cost=Decimal('60'),
            total_cost=Decimal('100'),
        )
        movement = add_dyeing_output_to_inventory(process)

        self.assertEqual(movement.total_cost, Decimal('100.00'))
        self.assertEqual(movement.unit_cost, Decimal('33.33'))
        movement.inventory.refresh_from_db()
        self.assertEqual(movement.inventory.cost_per_unit, Decimal('33.33'))
        self.assertEqual(movement.inventory.sale_price, Decimal('41.67'))


class DyeingProcessDeleteTests(TestCase):
    def setUp(self):
        self.user, self.client = authenticated_client("cleaner")
        self.purchase = create_purchase()
        self.process = create_dyeing_process(self.purchase)

    def test_delete_removes_inventory_movements(self):
        add_dyeing_output_to_inventory(self.process)
        response = self.client.delete(f'/api/dyeing/process/{self.process.id}/')
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()['message'], 'Dyeing process deleted successfully')
        self.assertFalse(DyeingProcess.objects.exists())
        self.assertFalse(InventoryTransaction.objects.exists())

    def test_delete_refused_with_fabric_production(self):
        FabricProduction.objects.create(
            source_thread=self.purchase,
            dyeing_process=self.process,
            fabric_type='Khaddar',
            batch_number='K-9',
            quantity_produced=Decimal('12'),
        )
        response = self.client.delete(f'/api/dyeing/process/{self.process.id}/')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Cannot delete dyeing process that has fabric productions')
        self.assertTrue(DyeingProcess.objects.filter(pk=self.process.id).exists())
