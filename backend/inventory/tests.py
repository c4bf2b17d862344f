"""
Test suite for Inventory module
Tests: availability checks, stock deduction, adjustments, movements, low stock
"""
from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.inventory.models import StockItem, StockMovement, low_stock_items
from backend.inventory.services import (
    adjust_stock, available_quantity, check_availability, reduce_stock, stock_shortfall,
)


class StockServiceTests(TestCase):

    def setUp(self):
        self.plain = TestDataFactory.create_stock_item('T-shirt', 'White', 'M', quantity=5)
        self.v_neck = TestDataFactory.create_stock_item('T-shirt', 'White', 'M', quantity=3, neck_type='V-Neck')
        self.round_neck = TestDataFactory.create_stock_item('T-shirt', 'White', 'M', quantity=7, neck_type='Round Neck')

    def test_available_quantity_any_neck(self):
        self.assertEqual(available_quantity('T-shirt', 'White', 'M'), 15)

    def test_blank_neck_type_matches_requested_neck(self):
        self.assertEqual(available_quantity('t-shirt', 'white', 'm', neck_type='V-Neck'), 8)

    def test_check_availability_reports_shortfall(self):
        result = check_availability('T-shirt', 'White', {'M': 10, 'L': 2, 'XL': 0}, neck_type='V-Neck')
        self.assertFalse(result['available'])
        self.assertEqual(result['shortfall'], {'M': 2, 'L': 2})

    def test_check_availability_ok(self):
        result = check_availability('T-shirt', 'White', {'M': 15})
        self.assertEqual(result, {'available': True, 'shortfall': {}})

    def test_reduce_stock_prefers_matching_neck_and_records_movements(self):
        deducted = reduce_stock('T-shirt', 'White', 'M', 7, neck_type='V-Neck')
        self.assertEqual(deducted, 7)
        self.plain.refresh_from_db()
        self.v_neck.refresh_from_db()
        self.round_neck.refresh_from_db()
        self.assertEqual(self.v_neck.quantity, 0)
        self.assertEqual(self.plain.quantity, 1)
        self.assertEqual(self.round_neck.quantity, 7)

        movements = StockMovement.objects.filter(movement_type=StockMovement.TYPE_OUT)
        self.assertEqual(sorted(m.quantity for m in movements), [3, 4])
        self.assertTrue(all(m.reason == 'Order fulfillment' for m in movements))

    def test_reduce_stock_without_neck_is_oldest_first(self):
        reduce_stock('T-shirt', 'White', 'M', 6)
        self.plain.refresh_from_db()
        self.v_neck.refresh_from_db()
        self.assertEqual((self.plain.quantity, self.v_neck.quantity), (0, 2))

    def test_stock_shortfall_shares_blank_neck_rows(self):
        # 5 shared + 3 V-Neck + 7 Round Neck
        self.assertEqual(stock_shortfall('T-shirt', 'White', 'M', {'v-neck': 6, 'round neck': 9}), 0)
        self.assertEqual(stock_shortfall('T-shirt', 'White', 'M', {'v-neck': 6, 'round neck': 10}), 1)
        self.assertEqual(stock_shortfall('t-shirt', 'white', 'm', {'v-neck': 8, '': 10}), 3)
        self.assertEqual(stock_shortfall('T-shirt', 'White', 'L', {'': 1}), 1)

    def test_reduce_stock_never_negative(self):
        with self.assertLogs('backend.inventory.services', level='WARNING'):
            deducted = reduce_stock('T-shirt', 'White', 'M', 100)
        self.assertEqual(deducted, 15)
        self.assertFalse(StockItem.objects.filter(quantity__lt=0).exists())

    def test_adjust_increase_and_reduce(self):
        item = adjust_stock(self.plain, 'increase', 10, 'Delivery')
        self.assertEqual(item.quantity, 15)
        item = adjust_stock(self.plain, 'reduce', 40)
        self.assertEqual(item.quantity, 0)

        movements = list(StockMovement.objects.filter(stock_item=self.plain).order_by('id'))
        self.assertEqual([(m.movement_type, m.quantity) for m in movements], [('in', 10), ('out', 15)])
        self.assertEqual(movements[0].reason, 'Delivery')

    def test_adjust_unknown_operation(self):
        with self.assertRaises(ValueError):
            adjust_stock(self.plain, 'explode', 1)

    def test_low_stock_items(self):
        TestDataFactory.create_stock_item('Hoodie', 'Black', 'L', quantity=50)
        low = list(low_stock_items())
        self.assertEqual(low[0], self.v_neck)
        self.assertNotIn('Hoodie', [item.product_type for item in low])


class StockAPITests(TestCase):

    def setUp(self):
        self.manager = TestDataFactory.create_manager()
        self.agent = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)
        self.item = TestDataFactory.create_stock_item('Jersey', 'Red', 'L', quantity=4, min_threshold=5)
        TestDataFactory.create_stock_item('Jersey', 'Blue', 'L', quantity=40)

    def test_list_with_filters(self):
        response = self.client.get('/api/stock?color=red')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertTrue(response.data[0]['is_low'])

        response = self.client.get('/api/stock?search=jersey')
        self.assertEqual(len(response.data), 2)

    def test_low_stock_endpoint(self):
        response = self.client.get('/api/stock/low')
        self.assertEqual([row['id'] for row in response.data], [self.item.id])

    def test_availability_endpoint(self):
        self.client.authenticate_user(self.agent)
        response = self.client.post('/api/stock/availability', {
            'product_type': 'Jersey',
            'color': 'Red',
            'size_breakdown': {'L': 6},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['available'])
        self.assertEqual(response.data['shortfall'], {'L': 2})
        self.assertEqual(response.data['on_hand'], {'L': 4})

    def test_adjust_requires_manager(self):
        self.client.authenticate_user(self.agent)
        response = self.client.post('/api/stock/adjust', {
            'stock_item_id': self.item.id, 'operation': 'increase', 'quantity': 5,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_adjust_records_movement(self):
        response = self.client.post('/api/stock/adjust', {
            'stock_item_id': self.item.id, 'operation': 'increase', 'quantity': 6, 'reason': 'Restock',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quantity'], 10)

        response = self.client.get(f'/api/stock/movements?stock_item={self.item.id}')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['reason'], 'Restock')
        self.assertEqual(response.data[0]['user'], self.manager.id)

    def test_adjust_rejects_zero_quantity(self):
        response = self.client.post('/api/stock/adjust', {
            'stock_item_id': self.item.id, 'operation': 'reduce', 'quantity': 0,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details'][0]['field'], 'quantity')

    def test_detail_not_found(self):
        response = self.client.get('/api/stock/999999')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('error', response.data)
