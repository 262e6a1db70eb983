"""Sales order submission, validation, listing and analytics."""

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from ..models import (
    ChequeTransaction,
    Customer,
    Inventory,
    InventoryTransaction,
    Payment,
    SalesOrder,
    SalesOrderItem,
)
from ..services.analytics import sales_analytics, trend
from ..services.inventory import add_purchase_to_inventory
from ..services.sales import line_subtotal, order_total
from . import authenticated_client, create_purchase


class SalesSubmissionTests(TestCase):
    def setUp(self):
        self.user, self.client = authenticated_client("seller")
        self.purchase = create_purchase()
        self.item = add_purchase_to_inventory(self.purchase).inventory

    def _line(self, **overrides):
        line = {
            'productType': 'THREAD',
            'productId': self.purchase.id,
            'inventoryItemId': self.item.id,
            'quantitySold': '10',
            'unitPrice': '12',
        }
        line.update(overrides)
        return line

    def _payload(self, **overrides):
        payload = {
            'customerName': 'Acme Garments',
            'items': [self._line()],
            'paymentStatus': 'PAID',
            'paymentAmount': '120',
            'paymentMode': 'CASH',
            'updateInventory': True,
        }
        payload.update(overrides)
        return payload

    def _submit(self, **overrides):
        return self.client.post('/api/sales/submit/', self._payload(**overrides), format='json')

    def _error(self, response):
        self.assertEqual(response.status_code, 400, response.content)
        body = response.json()
        self.assertFalse(body['success'])
        return body['error']

    def test_submission_creates_order_and_decrements_stock(self):
        response = self._submit()
        self.assertEqual(response.status_code, 201, response.content)
        body = response.json()
        self.assertEqual(body['message'], 'Sales order created successfully')
        self.assertEqual(body['data']['productType'], 'THREAD')
        self.assertEqual(body['data']['quantitySold'], 10.0)

        order = SalesOrder.objects.get()
        self.assertTrue(order.order_number.startswith('SO-'))
        self.assertEqual(order.total_sale, Decimal('120.00'))
        self.assertEqual(order.customer.name, 'Acme Garments')
        self.assertEqual(order.created_by, self.user)

        line = SalesOrderItem.objects.get()
        self.assertEqual(line.thread_purchase, self.purchase)
        self.assertEqual(line.subtotal, Decimal('120.00'))

        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal('90.00'))
        movement = InventoryTransaction.objects.get(transaction_type=InventoryTransaction.SALES)
        self.assertEqual(movement.quantity, Decimal('-10.00'))
        self.assertEqual(movement.remaining_quantity, Decimal('90.00'))
        self.assertEqual(movement.sales_order, order)

        payment = Payment.objects.get()
        self.assertEqual(payment.amount, Decimal('120.00'))
        self.assertEqual(payment.description, f'Payment for Order #{order.order_number}')

    def test_existing_customer_is_reused(self):
        customer = Customer.objects.create(name='Acme Garments')
        response = self._submit(customerId=customer.id)
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(Customer.objects.count(), 1)
        self.assertEqual(SalesOrder.objects.get().customer, customer)

    def test_insufficient_stock_rolls_back_everything(self):
        error = self._error(
            self._submit(
                items=[self._line(quantitySold='150')],
                paymentStatus='PENDING',
                paymentAmount='0',
            )
        )
        self.assertTrue(error.startswith('Insufficient inventory for Cotton 40s - Raw.'), error)

        self.assertFalse(SalesOrder.objects.exists())
        self.assertFalse(SalesOrderItem.objects.exists())
        self.assertFalse(Customer.objects.exists())
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal('100.00'))

    def test_stock_untouched_without_update_flag(self):
        response = self._submit(updateInventory=False)
        self.assertEqual(response.status_code, 201, response.content)
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal('100.00'))

    def test_subtotals_are_recalculated(self):
        response = self._submit(items=[self._line(subtotal='999')])
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(SalesOrderItem.objects.get().subtotal, Decimal('120.00'))

    def test_total_within_tolerance_is_kept(self):
        response = self._submit(totalSale='123', paymentAmount='123')
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(SalesOrder.objects.get().total_sale, Decimal('123.00'))

    def test_order_discount_and_tax_apply_to_total(self):
        response = self._submit(discount='10', tax='5', paymentStatus='PENDING', paymentAmount='0')
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(SalesOrder.objects.get().total_sale, Decimal('113.40'))
        self.assertFalse(Payment.objects.exists())

    def test_validation_messages(self):
        cases = [
            ({'customerName': ''}, 'Customer name is required'),
            ({'items': []}, 'At least one product item is required'),
            ({'items': [self._line(productType='')]}, 'All items must have a product type'),
            ({'items': [self._line(productType='YARN')]}, 'Unknown product type: YARN'),
            (
                {'items': [self._line(quantitySold='0')]},
                'Invalid quantity for THREAD item. Must be greater than 0.',
            ),
            (
                {'items': [self._line(unitPrice='0')]},
                'Invalid price for THREAD item. Must be greater than 0.',
            ),
            (
                {'items': [self._line(), self._line()]},
                f'Duplicate item detected: THREAD with ID {self.purchase.id}. '
                'Please combine quantities instead.',
            ),
            (
                {'totalSale': '200'},
                "Total sale amount (200.00) doesn't match the calculated sum of items (120.00)",
            ),
            ({'paymentAmount': '500'}, 'Payment amount cannot exceed total sale amount'),
            (
                {'paymentStatus': 'PARTIAL', 'paymentAmount': '0'},
                'Payment amount is required for PARTIAL status and must be greater than 0',
            ),
            ({'paymentMode': 'CHEQUE'}, 'Cheque number is required for CHEQUE payment mode'),
            (
                {'paymentMode': 'CHEQUE', 'chequeNumber': '000123'},
                'Bank name is required for CHEQUE payment mode',
            ),
            (
                {'deliveryDate': (timezone.now() - timedelta(days=3)).isoformat()},
                'Delivery date cannot be in the past',
            ),
            (
                {'orderDate': (timezone.now() + timedelta(days=3)).isoformat()},
                'Order date cannot be in the future',
            ),
        ]
        for overrides, message in cases:
            with self.subTest(message=message):
                self.assertEqual(self._error(self._submit(**overrides)), message)
        self.assertFalse(SalesOrder.objects.exists())

    def test_cheque_payment_records_cheque(self):
        response = self._submit(paymentMode='CHEQUE', chequeNumber='000123', bank='HBL', branch='Gulberg')
        self.assertEqual(response.status_code, 201, response.content)
        cheque = ChequeTransaction.objects.get()
        self.assertEqual(cheque.cheque_number, '000123')
        self.assertEqual(cheque.cheque_amount, Decimal('120.00'))
        self.assertEqual(cheque.payment.mode, 'CHEQUE')

        payment = response.json()['data']['payments'][0]
        self.assertEqual(payment['chequeTransaction']['bank'], 'HBL')

    def test_requested_order_number_is_used_once(self):
        response = self._submit(orderNumber='SO-CUSTOM-1')
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(response.json()['data']['orderNumber'], 'SO-CUSTOM-1')

        response = self._submit(orderNumber='SO-CUSTOM-1')
        self.assertEqual(response.status_code, 201, response.content)
        self.assertNotEqual(response.json()['data']['orderNumber'], 'SO-CUSTOM-1')
        self.assertEqual(SalesOrder.objects.count(), 2)

    def test_legacy_single_product_sale(self):
        response = self.client.post(
            '/api/sales/',
            {
                'customerName': 'Walk-in',
                'productType': 'THREAD',
                'productId': self.purchase.id,
                'inventoryItemId': self.item.id,
                'quantitySold': '5',
                'salePrice': '12',
                'paymentStatus': 'PENDING',
                'updateInventory': True,
            },
            format='json',
        )
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(SalesOrder.objects.get().total_sale, Decimal('60.00'))
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal('95.00'))

    def test_legacy_sale_reports_missing_field(self):
        response = self.client.post(
            '/api/sales/',
            {'customerName': 'Walk-in', 'productType': 'THREAD', 'quantitySold': '5'},
            format='json',
        )
        self.assertEqual(self._error(response), 'Missing required field: productId')


class SalesOrderQueryTests(TestCase):
    def setUp(self):
        self.user, self.client = authenticated_client("auditor")
        self.customer = Customer.objects.create(name='Bilal Fabrics')
        self.cotton = create_purchase(thread_type='Cotton 40s')
        self.silk = create_purchase(self.cotton.vendor, thread_type='Silk')

        self.single = self._order('SO-1', [(self.cotton, '10', '12')])
        self.multi = self._order('SO-2', [(self.cotton, '4', '12'), (self.silk, '6', '20')])

    def _order(self, number, lines, customer=None, **extra):
        total = sum((Decimal(qty) * Decimal(price) for _, qty, price in lines), Decimal('0'))
        extra.setdefault('payment_status', SalesOrder.PENDING)
        order = SalesOrder.objects.create(
            order_number=number,
            customer=customer or self.customer,
            total_sale=total,
            **extra,
        )
        for purchase, qty, price in lines:
            SalesOrderItem.objects.create(
                sales_order=order,
                product_type='THREAD',
                product_id=purchase.id,
                thread_purchase=purchase,
                quantity_sold=Decimal(qty),
                unit_price=Decimal(price),
                subtotal=Decimal(qty) * Decimal(price),
            )
        return order

    def test_list_flattens_single_item_orders(self):
        response = self.client.get('/api/sales/')
        self.assertEqual(response.status_code, 200, response.content)
        data = response.json()['data']
        self.assertEqual(data['total'], 2)
        self.assertEqual(data['page'], 1)

        rows = {row['orderNumber']: row for row in data['items']}
        self.assertEqual(rows['SO-1']['productType'], 'THREAD')
        self.assertEqual(rows['SO-1']['productName'], 'Cotton 40s - Raw')
        self.assertEqual(rows['SO-2']['productType'], 'MULTIPLE')
        self.assertEqual(rows['SO-2']['productName'], '2 items')
        self.assertEqual(rows['SO-2']['quantitySold'], 10.0)
        self.assertIsNone(rows['SO-2']['unitPrice'])

    def test_list_limit_and_offset(self):
        data = self.client.get('/api/sales/', {'limit': 1, 'offset': 1}).json()['data']
        self.assertEqual(len(data['items']), 1)
        self.assertEqual(data['total'], 2)
        self.assertEqual(data['page'], 2)

    def _listed(self, **params):
        response = self.client.get('/api/sales/', params)
        self.assertEqual(response.status_code, 200, response.content)
        data = response.json()['data']
        return data['total'], sorted(row['orderNumber'] for row in data['items'])

    def test_product_type_filter_lists_each_order_once(self):
        self.assertEqual(self._listed(productType='THREAD'), (2, ['SO-1', 'SO-2']))
        self.assertEqual(self._listed(productType='FABRIC'), (0, []))

    def test_customer_filter(self):
        other = Customer.objects.create(name='Karachi Looms')
        self._order('SO-3', [(self.silk, '1', '20')], customer=other)
        self.assertEqual(self._listed(customerId=other.id), (1, ['SO-3']))
        self.assertEqual(self._listed(customerId=self.customer.id), (2, ['SO-1', 'SO-2']))

    def test_payment_status_filter(self):
        self._order('SO-3', [(self.silk, '1', '20')], payment_status=SalesOrder.PAID)
        self.assertEqual(self._listed(paymentStatus='PAID'), (1, ['SO-3']))
        self.assertEqual(self._listed(paymentStatus='PENDING'), (2, ['SO-1', 'SO-2']))

    def test_date_range_filter(self):
        old_date = timezone.now() - timedelta(days=10)
        self._order('SO-3', [(self.silk, '1', '20')], order_date=old_date)
        old_day = timezone.localdate(old_date).isoformat()
        today = timezone.localdate().isoformat()

        self.assertEqual(self._listed(startDate=old_day, endDate=old_day), (1, ['SO-3']))
        self.assertEqual(self._listed(startDate=today), (2, ['SO-1', 'SO-2']))
        self.assertEqual(self._listed(endDate=today), (3, ['SO-1', 'SO-2', 'SO-3']))

    def test_check_order_number(self):
        data = self.client.get('/api/sales/check-order-number/', {'orderNumber': 'SO-2'}).json()['data']
        self.assertTrue(data['exists'])
        self.assertEqual(data['order']['id'], self.multi.id)

        data = self.client.get('/api/sales/check-order-number/', {'orderNumber': 'SO-404'}).json()['data']
        self.assertEqual(data, {'exists': False, 'order': None})

        response = self.client.get('/api/sales/check-order-number/')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Order number parameter is required')

    def test_delete_keeps_stock_history(self):
        response = self.client.delete(f'/api/sales/{self.single.id}/')
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()['message'], 'Sales order deleted successfully')
        self.assertFalse(SalesOrder.objects.filter(pk=self.single.id).exists())
        self.assertFalse(SalesOrderItem.objects.filter(sales_order_id=self.single.id).exists())

    def test_orders_cannot_be_edited(self):
        response = self.client.patch(f'/api/sales/{self.single.id}/', {'remarks': 'x'}, format='json')
        self.assertEqual(response.status_code, 405)

    def test_nested_payments(self):
        response = self.client.post(
            f'/api/sales/{self.single.id}/payments/',
            {'amount': '50.00', 'mode': 'ONLINE', 'description': 'Advance'},
            format='json',
        )
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(response.json()['data']['salesOrderId'], self.single.id)

        data = self.client.get(f'/api/sales/{self.single.id}/payments/').json()['data']
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]['mode'], 'ONLINE')

        response = self.client.post('/api/sales/999999/payments/', {'amount': '5'}, format='json')
        self.assertEqual(response.status_code, 404)


class SalesPricingTests(TestCase):
    def test_line_subtotal_applies_discount_then_tax(self):
        self.assertEqual(line_subtotal('100', '2', discount='10', tax='5'), Decimal('189.00'))
        self.assertEqual(line_subtotal('3.33', '3'), Decimal('9.99'))

    def test_order_total_ignores_zero_adjustments(self):
        self.assertEqual(order_total([Decimal('50'), Decimal('70')]), Decimal('120.00'))
        self.assertEqual(order_total([Decimal('100')], discount='10', tax='10'), Decimal('99.00'))


class SalesAnalyticsTests(TestCase):
    def setUp(self):
        self.now = timezone.now()
        self.customer = Customer.objects.create(name='Noor Textiles')

    def _order(self, number, days_ago, total, mode='CASH', status=SalesOrder.PAID):
        return SalesOrder.objects.create(
            order_number=number,
            order_date=self.now - timedelta(days=days_ago),
            customer=self.customer,
            payment_mode=mode,
            payment_status=status,
            total_sale=Decimal(total),
        )

    def test_trend_without_baseline_is_zero(self):
        self.assertEqual(trend(Decimal('10'), Decimal('0')), 0.0)
        self.assertEqual(trend(150, 100), 50.0)
        self.assertEqual(trend(50, 100), -50.0)

    def test_thirty_day_summary_against_previous_period(self):
        self._order('SO-A', 2, '300')
        self._order('SO-B', 40, '200')
        self._order('SO-C', 200, '999')

        summary = sales_analytics('30days', now=self.now)
        self.assertEqual(summary['totalRevenue'], 300.0)
        self.assertEqual(summary['totalOrders'], 1)
        self.assertEqual(summary['averageOrderSize'], 300.0)
        self.assertEqual(summary['revenueTrend'], 50.0)
        self.assertEqual(summary['orderTrend'], 0.0)
        self.assertEqual(summary['paymentDistribution'], [{'name': 'CASH', 'value': 1}])
        self.assertEqual(summary['paymentStatusDistribution'], [{'name': 'PAID', 'value': 1}])
        self.assertEqual(summary['topCustomers'], [{'name': 'Noor Textiles', 'total': 300.0, 'count': 1}])

        buckets = summary['salesByTimeframe']
        self.assertEqual([bucket['name'] for bucket in buckets], ['Week 1', 'Week 2', 'Week 3', 'Week 4'])
        self.assertEqual(buckets[3], {'name': 'Week 4', 'revenue': 300.0, 'orders': 1})

    def test_previous_period_has_the_same_length(self):
        self._order('SO-F', 9, '100')
        self._order('SO-G', 61.25, '50')

        summary = sales_analytics('30days', now=self.now)
        self.assertEqual(summary['revenueTrend'], 0.0)
        self.assertEqual(summary['orderTrend'], 0.0)

        self._order('SO-H', 60.75, '50')
        summary = sales_analytics('30days', now=self.now)
        self.assertEqual(summary['revenueTrend'], 100.0)
        self.assertEqual(summary['orderTrend'], 0.0)

    def test_seven_day_buckets_by_weekday(self):
        self._order('SO-D', 1, '80')
        summary = sales_analytics('7days', now=self.now)
        buckets = summary['salesByTimeframe']
        self.assertEqual(len(buckets), 7)
        self.assertEqual(sum(bucket['orders'] for bucket in buckets), 1)

    def test_unknown_range_falls_back_to_thirty_days(self):
        self._order('SO-E', 5, '40')
        _, client = authenticated_client("analyst")
        response = client.get('/api/sales/analytics/', {'range': 'decade'})
        self.assertEqual(response.status_code, 200, response.content)
        data = response.json()['data']
        self.assertEqual(data['totalOrders'], 1)
        self.assertEqual(len(data['salesByTimeframe']), 4)
