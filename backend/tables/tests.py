"""
Test suite for the generic table API
Tests: paging, filtering, ordering, record writes, per-user scoping, uploads
"""
from pathlib import Path
import shutil
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework import status

from backend.catalog.models import ProductConfig
from backend.core.exceptions import BadRequest
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.inventory.models import StockItem, StockMovement
from backend.orders.models import Order, OrderItem
from backend.tables.filters import build_filters, coerce_bool
from backend.tables.registry import TABLES, get_table

STOCK = 11426
ORDERS = 11425
ORDER_ITEMS = 17047
PRODUCT_CONFIG = 11428


class RegistryTests(TestCase):

    def test_known_tables(self):
        self.assertEqual(get_table(STOCK).name, 'stock_items')
        self.assertEqual(get_table('11425').name, 'orders')
        self.assertEqual(len(TABLES), 5)

    def test_unknown_table(self):
        with self.assertRaisesMessage(BadRequest, 'Invalid table ID'):
            get_table(99999)

    def test_coerce_bool(self):
        self.assertTrue(coerce_bool('True'))
        self.assertFalse(coerce_bool('0', default=True))
        self.assertTrue(coerce_bool('maybe', default=True))

    def test_unknown_operator_is_skipped(self):
        condition = build_filters(get_table(STOCK), [{'name': 'color', 'op': 'Like', 'value': 'Red'}])
        self.assertFalse(condition)


class TablePageTests(TestCase):

    def setUp(self):
        self.manager = TestDataFactory.create_manager()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

        self.red_m = TestDataFactory.create_stock_item('Hoodie', 'Red', 'M', quantity=3)
        self.red_l = TestDataFactory.create_stock_item('Hoodie', 'Red', 'L', quantity=12)
        self.blue_m = TestDataFactory.create_stock_item('Polo', 'Blue', 'M', quantity=30)

    def page(self, table_id=STOCK, **body):
        return self.client.post(f'/api/table/{table_id}/page', body, format='json')

    def test_default_page_newest_first(self):
        response = self.page()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['VirtualCount'], 3)
        self.assertEqual([row['ID'] for row in data['List']], [self.blue_m.id, self.red_l.id, self.red_m.id])

    def test_filters_and_ordering(self):
        response = self.page(
            OrderByField='Quantity',
            IsAsc=True,
            Filters=[
                {'name': 'COLOR', 'op': 'Equal', 'value': 'Red'},
                {'name': 'quantity', 'op': 'GreaterThanOrEqual', 'value': 1},
            ],
        )
        data = response.data['data']
        self.assertEqual(data['VirtualCount'], 2)
        self.assertEqual([row['quantity'] for row in data['List']], [3, 12])

    def test_string_operators(self):
        response = self.page(Filters=[{'name': 'product_type', 'op': 'StringStartsWith', 'value': 'hoo'}])
        self.assertEqual(response.data['data']['VirtualCount'], 2)

        response = self.page(Filters=[{'name': 'product_type', 'op': 'StringContains', 'value': 'OL'}])
        self.assertEqual(response.data['data']['VirtualCount'], 1)

    def test_paging(self):
        response = self.page(PageNo=2, PageSize=2, OrderByField='id', IsAsc='true')
        data = response.data['data']
        self.assertEqual(data['VirtualCount'], 3)
        self.assertEqual([row['ID'] for row in data['List']], [self.blue_m.id])

    def test_page_numbers_are_clamped(self):
        response = self.page(PageNo=0, PageSize=0)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']['List']), 1)

    def test_invalid_table(self):
        response = self.page(table_id=1)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid table ID')

    def test_unknown_column(self):
        response = self.page(Filters=[{'name': 'nope', 'op': 'Equal', 'value': 1}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Unknown column: nope')

        response = self.page(OrderByField='nope')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_bad_filter_value(self):
        response = self.page(Filters=[{'name': 'quantity', 'op': 'GreaterThan', 'value': 'many'}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data['error'].startswith('Invalid filter value'))

    def test_requires_authentication(self):
        self.client.logout()
        response = self.page()
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_agent_sees_own_orders_only(self):
        agent_user = TestDataFactory.create_user()
        agent = TestDataFactory.create_agent(user=agent_user)
        own = TestDataFactory.create_order(agent=agent)
        other = TestDataFactory.create_order()
        TestDataFactory.create_order_item(own)
        TestDataFactory.create_order_item(other)

        response = self.page(table_id=ORDERS)
        self.assertEqual(response.data['data']['VirtualCount'], 2)

        self.client.authenticate_user(agent_user)
        response = self.page(table_id=ORDERS)
        self.assertEqual([row['ID'] for row in response.data['data']['List']], [own.id])

        response = self.page(table_id=ORDER_ITEMS)
        self.assertEqual([row['order_id'] for row in response.data['data']['List']], [own.id])


class TableWriteTests(TestCase):

    def setUp(self):
        self.manager = TestDataFactory.create_manager()
        self.agent = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_create_update_delete(self):
        response = self.client.post(f'/api/table/{PRODUCT_CONFIG}/create', {
            'ID': 0, 'Config_Type': 'color', 'config_value': 'Teal', 'display_order': 4,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        record_id = response.data['insertId']
        self.assertEqual(ProductConfig.objects.get(pk=record_id).config_value, 'Teal')

        response = self.client.post(f'/api/table/{PRODUCT_CONFIG}/update', {
            'ID': record_id, 'is_active': False,
        }, format='json')
        self.assertEqual(response.data, {'success': True, 'affectedRows': 1})
        self.assertFalse(ProductConfig.objects.get(pk=record_id).is_active)

        response = self.client.post(f'/api/table/{PRODUCT_CONFIG}/delete', {'ID': record_id}, format='json')
        self.assertEqual(response.data, {'success': True, 'affectedRows': 1})
        self.assertFalse(ProductConfig.objects.filter(pk=record_id).exists())

    def test_create_validation_error(self):
        response = self.client.post(f'/api/table/{PRODUCT_CONFIG}/create', {
            'config_type': 'flavour', 'config_value': 'Mint',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Validation failed')
        self.assertEqual(response.data['details'][0]['field'], 'config_type')

    def test_unknown_column_in_row(self):
        response = self.client.post(f'/api/table/{PRODUCT_CONFIG}/create', {
            'config_type': 'color', 'config_value': 'Teal', 'flavour': 'mint',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Unknown column: flavour')

    def test_record_id_required(self):
        response = self.client.post(f'/api/table/{STOCK}/update', {'quantity': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Record ID is required')

    def test_missing_record(self):
        response = self.client.post(f'/api/table/{STOCK}/delete', {'ID': 424242}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_agent_cannot_write_manager_tables(self):
        item = TestDataFactory.create_stock_item()
        self.client.authenticate_user(self.agent)
        response = self.client.post(f'/api/table/{STOCK}/update', {'ID': item.id, 'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        item.refresh_from_db()
        self.assertEqual(item.quantity, 20)

    def test_agent_cannot_touch_other_orders(self):
        order = TestDataFactory.create_order()
        self.client.authenticate_user(self.agent)
        response = self.client.post(f'/api/table/{ORDERS}/update', {'ID': order.id, 'order_status': 'Shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_agent_cannot_add_items_to_other_orders(self):
        foreign = TestDataFactory.create_order()
        row = {'order_id': foreign.id, 'product_type': 'T-shirt', 'color': 'Red', 'size': 'M',
               'quantity': 2, 'unit_price': '10.00'}
        self.client.authenticate_user(self.agent)
        response = self.client.post(f'/api/table/{ORDER_ITEMS}/create', row, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details'][0]['field'], 'order_id')
        self.assertFalse(OrderItem.objects.filter(order=foreign).exists())

        own = TestDataFactory.create_order(created_by=self.agent)
        response = self.client.post(f'/api/table/{ORDER_ITEMS}/create', dict(row, order_id=own.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(OrderItem.objects.get(pk=response.data['insertId']).order_id, own.id)

    def test_agent_cannot_move_items_to_other_orders(self):
        own = TestDataFactory.create_order(created_by=self.agent)
        foreign = TestDataFactory.create_order()
        item = TestDataFactory.create_order_item(own)
        self.client.authenticate_user(self.agent)
        response = self.client.post(f'/api/table/{ORDER_ITEMS}/update', {'ID': item.id, 'order_id': foreign.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        item.refresh_from_db()
        self.assertEqual(item.order_id, own.id)

    def test_agent_orders_attributed_to_own_profile(self):
        profile = TestDataFactory.create_agent(user=self.agent)
        other = TestDataFactory.create_agent()
        row = {'customer_name': 'Walk-in', 'product_type': 'Polo', 'total_quantity': 3, 'total_amount': '45.00'}
        self.client.authenticate_user(self.agent)

        response = self.client.post(f'/api/table/{ORDERS}/create', dict(row, agent_id=other.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details'][0]['field'], 'agent_id')

        response = self.client.post(f'/api/table/{ORDERS}/create', dict(row, created_by=self.manager.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Order.objects.exists())

        response = self.client.post(f'/api/table/{ORDERS}/create', dict(row, agent_id=profile.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order = Order.objects.get(pk=response.data['insertId'])
        self.assertEqual((order.agent_id, order.created_by_id), (profile.id, self.agent.id))

    def test_manager_may_assign_any_agent(self):
        other = TestDataFactory.create_agent()
        response = self.client.post(f'/api/table/{ORDERS}/create', {
            'customer_name': 'Walk-in', 'agent_id': other.id, 'total_amount': '45.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Order.objects.get(pk=response.data['insertId']).agent_id, other.id)

    def test_new_stock_records_movement(self):
        response = self.client.post(f'/api/table/{STOCK}/create', {
            'product_type': 'Hoodie', 'color': 'Black', 'size': 'XL', 'quantity': 12,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        movement = StockMovement.objects.get(stock_item_id=response.data['insertId'])
        self.assertEqual((movement.movement_type, movement.quantity), (StockMovement.TYPE_IN, 12))
        self.assertEqual(movement.reason, 'New stock addition')
        self.assertEqual(movement.user_id, self.manager.id)

    def test_update_stock_quantity(self):
        item = TestDataFactory.create_stock_item()
        response = self.client.post(f'/api/table/{STOCK}/update', {'ID': item.id, 'Quantity': 7}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(StockItem.objects.get(pk=item.id).quantity, 7)


class UploadTests(TestCase):

    def setUp(self):
        self.upload_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.upload_root, ignore_errors=True)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def upload(self, name='design.png', content=b'\x89PNG data', **extra):
        data = {'file': SimpleUploadedFile(name, content)}
        data.update(extra)
        with override_settings(UPLOAD_ROOT=self.upload_root):
            return self.client.post('/api/upload', data, format='multipart')

    def test_upload_stores_file(self):
        response = self.upload(filename='Front print')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['filename'], 'Front print')
        self.assertRegex(data['url'], r'^/uploads/file-\d+-\d+\.png$')
        stored = Path(data['path'])
        self.assertEqual(stored.parent, Path(self.upload_root))
        self.assertEqual(stored.read_bytes(), b'\x89PNG data')

    def test_original_name_used_by_default(self):
        response = self.upload(name='Logo.JPG')
        self.assertEqual(response.data['data']['filename'], 'Logo.JPG')
        self.assertTrue(response.data['data']['url'].endswith('.jpg'))

    def test_invalid_type(self):
        response = self.upload(name='script.exe')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid file type')

    @override_settings(MAX_UPLOAD_SIZE=4)
    def test_too_large(self):
        response = self.upload()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'File too large')

    def test_missing_file(self):
        response = self.client.post('/api/upload', {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'No file uploaded')
