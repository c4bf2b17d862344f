"""
Test suite for Orders module
Tests: order composition rules, order placement with stock deduction,
visibility, updates, duplicate detection and upcoming deliveries
"""
from datetime import timedelta
from decimal import Decimal
from unittest import mock
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.inventory.models import StockMovement
from backend.orders import composition
from backend.orders.models import Order, OrderItem


class CompositionTests(SimpleTestCase):

    def setUp(self):
        self.products = [
            {
                'product_type': 'T-shirt',
                'unit_price': Decimal('12.50'),
                'variants': [
                    {'size': 'M', 'color': 'Red', 'quantity': 4},
                    {'size': 'L', 'color': 'Red', 'quantity': 2},
                    {'size': 'S', 'color': 'Blue', 'quantity': 0},
                ],
            },
            {
                'product_type': 'Hoodie',
                'unit_price': '30',
                'variants': [{'size': 'M', 'color': 'Black', 'quantity': 1}],
            },
        ]

    def test_product_quantity_and_totals(self):
        self.assertEqual(composition.product_quantity(self.products[0]), 6)
        self.assertEqual(composition.item_total(self.products[0]), Decimal('75.00'))
        totals = composition.order_totals(self.products)
        self.assertEqual(totals, {'total_quantity': 7, 'total_amount': Decimal('105.00')})

    def test_negative_quantities_are_ignored(self):
        product = {'product_type': 'Polo', 'variants': [{'size': 'M', 'color': 'Red', 'quantity': -3}]}
        self.assertEqual(composition.product_quantity(product), 0)
        self.assertFalse(composition.is_valid_product(product))

    def test_valid_product(self):
        self.assertTrue(composition.is_valid_product(self.products[0]))
        self.assertFalse(composition.is_valid_product({'product_type': '', 'variants': self.products[0]['variants']}))
        self.assertFalse(composition.is_valid_product({'product_type': 'T-shirt', 'variants': [{'size': 'M', 'color': '', 'quantity': 2}]}))

    def test_merge_size_breakdown(self):
        self.assertEqual(composition.merge_size_breakdown(self.products), {'M': 5, 'L': 2})

    def test_distinct_colors(self):
        self.assertEqual(composition.distinct_values(self.products, 'color'), ['Red', 'Blue', 'Black'])

    def test_auto_distribute(self):
        self.assertEqual(composition.auto_distribute(10, ['S', 'M', 'L']), {'S': 4, 'M': 3, 'L': 3})
        self.assertEqual(composition.auto_distribute(2, ['S', 'M', 'L']), {'S': 1, 'M': 1, 'L': 0})
        self.assertEqual(composition.auto_distribute(5, []), {})

    def test_validate_size_breakdown(self):
        self.assertEqual(composition.validate_size_breakdown({'M': 3, 'L': 2}, 5), {})
        errors = composition.validate_size_breakdown({'M': 8, 'L': -1}, 5, available_stock={'M': 6})
        self.assertEqual(errors['L'], 'Quantity cannot be negative')
        self.assertEqual(errors['M'], 'Only 6 available in stock')
        self.assertIn('exceeds', errors['total'])
        self.assertIn('less than', composition.validate_size_breakdown({'M': 1}, 5)['total'])

    def test_stock_status(self):
        self.assertEqual(composition.stock_status(10, 5), composition.STOCK_INSUFFICIENT)
        self.assertEqual(composition.stock_status(5, 10), composition.STOCK_LOW)
        self.assertEqual(composition.stock_status(5, 11), composition.STOCK_OK)
        self.assertEqual(composition.stock_status(5, None), composition.STOCK_UNKNOWN)

    def test_payment_status(self):
        self.assertEqual(composition.payment_status(100, 0), 'Pending')
        self.assertEqual(composition.payment_status(100, 40), 'Partial')
        self.assertEqual(composition.payment_status(100, 100), 'Complete')
        self.assertEqual(composition.pending_amount('100.00', '40.00'), Decimal('60.00'))


class OrderCreateTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.agent = TestDataFactory.create_agent(user=self.user)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_custom_order_derives_totals(self):
        TestDataFactory.create_stock_item('T-shirt', 'White', 'M', quantity=10)
        response = self.client.post('/api/orders', TestDataFactory.order_payload(paid_amount='20.00'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

        data = response.data['data']
        self.assertRegex(data['order_number'], r'^ORD-\d{8}-[0-9A-F]{8}$')
        self.assertEqual(data['total_quantity'], 5)
        self.assertEqual(data['total_amount'], Decimal('50.00'))
        self.assertEqual(data['payment_status'], 'Partial')
        self.assertEqual(data['size_breakdown'], {'M': 3, 'L': 2})
        self.assertEqual(data['customer_address'], '1 Main St, Springfield, IL 62701')
        self.assertEqual(data['agent_id'], self.agent.id)
        self.assertEqual(data['created_by'], self.user.id)
        self.assertEqual(len(data['items']), 2)
        self.assertEqual(data['items'][0]['line_total'], Decimal('30.00'))

        # Custom orders leave stock alone
        self.assertFalse(StockMovement.objects.exists())

    def test_explicit_total_amount_wins(self):
        payload = TestDataFactory.order_payload(total_amount='80.00', paid_amount='80.00')
        response = self.client.post('/api/orders', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['total_amount'], Decimal('80.00'))
        self.assertEqual(response.data['data']['payment_status'], 'Complete')

    def test_multiple_products_summary(self):
        products = [
            {'product_type': 'T-shirt', 'unit_price': '10', 'variants': [{'size': 'M', 'color': 'Red', 'quantity': 2}]},
            {'product_type': 'Hoodie', 'unit_price': '25', 'variants': [{'size': 'L', 'color': 'Black', 'quantity': 1}]},
        ]
        response = self.client.post('/api/orders', TestDataFactory.order_payload(products=products), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['product_type'], 'Multiple Products')
        self.assertEqual(data['product_color'], 'Multiple')
        self.assertEqual(data['total_amount'], Decimal('45.00'))

    def test_delivery_must_precede_event(self):
        today = timezone.localdate()
        payload = TestDataFactory.order_payload(
            delivery_date=(today + timedelta(days=10)).isoformat(),
            event_date=(today + timedelta(days=10)).isoformat(),
        )
        response = self.client.post('/api/orders', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details'][0]['message'], 'Delivery date must be before event date')

    def test_paid_cannot_exceed_total(self):
        response = self.client.post('/api/orders', TestDataFactory.order_payload(paid_amount='51.00'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details'][0]['field'], 'paid_amount')

    def test_product_without_variants_rejected(self):
        products = [{'product_type': 'T-shirt', 'unit_price': '10', 'variants': [{'size': '', 'color': 'Red', 'quantity': 2}]}]
        response = self.client.post('/api/orders', TestDataFactory.order_payload(products=products), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Order.objects.exists())

    def test_from_stock_requires_stock(self):
        TestDataFactory.create_stock_item('T-shirt', 'White', 'M', quantity=3)
        payload = TestDataFactory.order_payload(order_type=Order.TYPE_FROM_STOCK)
        response = self.client.post('/api/orders', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        messages = [detail['message'] for detail in response.data['details']]
        self.assertIn('Insufficient stock for T-shirt White L: short by 2', messages)
        self.assertFalse(Order.objects.exists())

    def test_from_stock_deducts_stock(self):
        medium = TestDataFactory.create_stock_item('T-shirt', 'White', 'M', quantity=3)
        large = TestDataFactory.create_stock_item('T-shirt', 'White', 'L', quantity=10)
        payload = TestDataFactory.order_payload(order_type=Order.TYPE_FROM_STOCK)
        response = self.client.post('/api/orders', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

        medium.refresh_from_db()
        large.refresh_from_db()
        self.assertEqual(medium.quantity, 0)
        self.assertEqual(large.quantity, 8)

        order = Order.objects.get()
        movements = StockMovement.objects.filter(order=order, movement_type=StockMovement.TYPE_OUT)
        self.assertEqual(sorted(m.quantity for m in movements), [2, 3])
        self.assertTrue(all(m.reason == 'Order fulfillment' and m.user_id == self.user.id for m in movements))

    def test_from_stock_lines_compete_for_shared_stock(self):
        shared = TestDataFactory.create_stock_item('T-shirt', 'White', 'M', quantity=6)
        products = [
            {'product_type': 'T-shirt', 'neck_type': 'Round Neck', 'unit_price': '10',
             'variants': [{'size': 'M', 'color': 'White', 'quantity': 5}]},
            {'product_type': 'T-shirt', 'neck_type': 'V-Neck', 'unit_price': '10',
             'variants': [{'size': 'M', 'color': 'White', 'quantity': 5}]},
        ]
        payload = TestDataFactory.order_payload(products=products, order_type=Order.TYPE_FROM_STOCK)
        response = self.client.post('/api/orders', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        messages = [detail['message'] for detail in response.data['details']]
        self.assertEqual(messages, ['Insufficient stock for T-shirt White M: short by 4'])

        shared.refresh_from_db()
        self.assertEqual(shared.quantity, 6)
        self.assertFalse(Order.objects.exists())
        self.assertFalse(StockMovement.objects.exists())

    def test_from_stock_adds_up_repeated_sizes(self):
        TestDataFactory.create_stock_item('Hoodie', 'Black', 'L', quantity=5)
        products = [
            {'product_type': 'Hoodie', 'unit_price': '20', 'variants': [{'size': 'L', 'color': 'Black', 'quantity': 3}]},
            {'product_type': 'hoodie', 'unit_price': '25', 'variants': [{'size': 'l', 'color': 'black', 'quantity': 3}]},
        ]
        payload = TestDataFactory.order_payload(products=products, order_type=Order.TYPE_FROM_STOCK)
        response = self.client.post('/api/orders', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        messages = [detail['message'] for detail in response.data['details']]
        self.assertEqual(messages, ['Insufficient stock for Hoodie Black L: short by 1'])

    def test_from_stock_neck_lines_keep_their_own_rows(self):
        shared = TestDataFactory.create_stock_item('T-shirt', 'White', 'M', quantity=5)
        v_neck = TestDataFactory.create_stock_item('T-shirt', 'White', 'M', quantity=5, neck_type='V-Neck')
        products = [
            {'product_type': 'T-shirt', 'neck_type': 'Round Neck', 'unit_price': '10',
             'variants': [{'size': 'M', 'color': 'White', 'quantity': 5}]},
            {'product_type': 'T-shirt', 'neck_type': 'V-Neck', 'unit_price': '10',
             'variants': [{'size': 'M', 'color': 'White', 'quantity': 5}]},
        ]
        payload = TestDataFactory.order_payload(products=products, order_type=Order.TYPE_FROM_STOCK)
        response = self.client.post('/api/orders', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

        shared.refresh_from_db()
        v_neck.refresh_from_db()
        self.assertEqual((shared.quantity, v_neck.quantity), (0, 0))

    def test_from_stock_rechecked_while_deducting(self):
        # Stock drained between validation and deduction
        medium = TestDataFactory.create_stock_item('T-shirt', 'White', 'M', quantity=3)
        payload = TestDataFactory.order_payload(order_type=Order.TYPE_FROM_STOCK)
        with mock.patch('backend.orders.serializers.stock_shortfall', return_value=0), \
                self.assertLogs('backend.inventory.services', level='WARNING'):
            response = self.client.post('/api/orders', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        messages = [detail['message'] for detail in response.data['details']]
        self.assertEqual(messages, ['Insufficient stock for T-shirt White L: short by 2'])

        medium.refresh_from_db()
        self.assertEqual(medium.quantity, 3)
        self.assertFalse(Order.objects.exists())
        self.assertFalse(StockMovement.objects.exists())

    def test_mixed_order_uses_available_stock(self):
        medium = TestDataFactory.create_stock_item('T-shirt', 'White', 'M', quantity=1)
        payload = TestDataFactory.order_payload(order_type=Order.TYPE_MIXED)
        response = self.client.post('/api/orders', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        medium.refresh_from_db()
        self.assertEqual(medium.quantity, 0)
        self.assertEqual(StockMovement.objects.get().quantity, 1)


class OrderManagementTests(TestCase):

    def setUp(self):
        self.manager = TestDataFactory.create_manager()
        self.agent_user = TestDataFactory.create_user()
        self.agent = TestDataFactory.create_agent(user=self.agent_user)
        self.other_agent = TestDataFactory.create_agent()

        self.own_order = TestDataFactory.create_order(agent=self.agent, customer_name='Own Customer')
        self.other_order = TestDataFactory.create_order(agent=self.other_agent, customer_name='Someone Else')
        TestDataFactory.create_order_item(self.own_order)

        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_manager_sees_all_orders(self):
        response = self.client.get('/api/orders')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_agent_sees_own_orders(self):
        self.client.authenticate_user(self.agent_user)
        response = self.client.get('/api/orders')
        self.assertEqual([row['id'] for row in response.data], [self.own_order.id])

        response = self.client.get(f'/api/orders/{self.other_order.id}')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_filters(self):
        response = self.client.get('/api/orders', {'search': 'own cust'})
        self.assertEqual([row['id'] for row in response.data], [self.own_order.id])

        response = self.client.get(f'/api/orders?agent={self.other_agent.id}')
        self.assertEqual([row['id'] for row in response.data], [self.other_order.id])

        response = self.client.get('/api/orders?order_status=Shipped')
        self.assertEqual(response.data, [])

    def test_detail_includes_items(self):
        response = self.client.get(f'/api/orders/{self.own_order.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(response.data['pending_amount'], Decimal('100.00'))

    def test_patch_paid_amount_rederives_payment_status(self):
        response = self.client.patch(f'/api/orders/{self.own_order.id}', {'paid_amount': '100.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['payment_status'], 'Complete')
        self.assertEqual(response.data['pending_amount'], Decimal('0.00'))

    def test_patch_requires_manager(self):
        self.client.authenticate_user(self.agent_user)
        response = self.client.patch(f'/api/orders/{self.own_order.id}', {'order_status': 'Confirmed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_removes_items(self):
        response = self.client.delete(f'/api/orders/{self.own_order.id}')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Order.objects.filter(pk=self.own_order.id).exists())
        self.assertFalse(OrderItem.objects.exists())

    def test_status_update(self):
        self.client.authenticate_user(self.agent_user)
        response = self.client.post(f'/api/orders/{self.own_order.id}/status', {'order_status': 'Shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.own_order.refresh_from_db()
        self.assertEqual(self.own_order.order_status, Order.STATUS_SHIPPED)

        response = self.client.post(f'/api/orders/{self.own_order.id}/status', {'order_status': 'Lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_duplicates(self):
        event_date = self.own_order.event_date.isoformat()
        TestDataFactory.create_order(
            customer_name='own customer', event_date=self.own_order.event_date, order_status=Order.STATUS_CANCELLED,
        )
        response = self.client.get(
            f'/api/orders/duplicates?customer_name=OWN CUSTOMER&product_type=t-shirt&event_date={event_date}'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['duplicates'][0]['id'], self.own_order.id)

    def test_agent_duplicates_limited_to_own_orders(self):
        event_date = self.other_order.event_date.isoformat()
        params = {'customer_name': 'Someone Else', 'product_type': 'T-shirt', 'event_date': event_date}
        self.assertEqual(self.client.get('/api/orders/duplicates', params).data['count'], 1)

        self.client.authenticate_user(self.agent_user)
        response = self.client.get('/api/orders/duplicates', params)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'duplicates': [], 'count': 0})

    def test_duplicates_needs_all_params(self):
        response = self.client.get('/api/orders/duplicates?customer_name=x')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_upcoming(self):
        TestDataFactory.create_order(delivery_in_days=20)
        TestDataFactory.create_order(delivery_in_days=2, order_status=Order.STATUS_DELIVERED)
        TestDataFactory.create_order(delivery_in_days=-1)
        soon = TestDataFactory.create_order(delivery_in_days=1)

        response = self.client.get('/api/orders/upcoming?days=7')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [soon.id, self.own_order.id, self.other_order.id])
