"""
Test suite for the product catalog
Tests: grouped configuration, caching, duplicate detection, default values
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from backend.catalog.defaults import DEFAULT_PRODUCT_CONFIG, ensure_config_values
from backend.catalog.models import ProductConfig
from backend.catalog.serializers import ProductConfigSerializer
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class ProductConfigSerializerTests(TestCase):

    def setUp(self):
        TestDataFactory.create_product_config(ProductConfig.TYPE_COLOR, 'Navy')

    def test_duplicate_is_case_insensitive(self):
        serializer = ProductConfigSerializer(data={'config_type': 'color', 'config_value': 'navy'})
        self.assertFalse(serializer.is_valid())
        self.assertEqual(serializer.errors['config_value'][0], 'This configuration value already exists')

    def test_same_value_other_type_is_allowed(self):
        serializer = ProductConfigSerializer(data={'config_type': 'product_type', 'config_value': 'Navy'})
        self.assertTrue(serializer.is_valid(), serializer.errors)

    def test_blank_value_rejected(self):
        serializer = ProductConfigSerializer(data={'config_type': 'size', 'config_value': '   '})
        self.assertFalse(serializer.is_valid())
        self.assertIn('config_value', serializer.errors)

    def test_update_keeps_own_value(self):
        config = ProductConfig.objects.get(config_value='Navy')
        serializer = ProductConfigSerializer(config, data={'config_value': 'NAVY'}, partial=True)
        self.assertTrue(serializer.is_valid(), serializer.errors)


class ProductConfigAPITests(TestCase):

    def setUp(self):
        cache.clear()
        self.manager = TestDataFactory.create_manager()
        self.agent = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.agent)

        TestDataFactory.create_product_config(ProductConfig.TYPE_SIZE, 'L', display_order=3)
        TestDataFactory.create_product_config(ProductConfig.TYPE_SIZE, 'S', display_order=1)
        TestDataFactory.create_product_config(ProductConfig.TYPE_SIZE, 'XXL', display_order=5, is_active=False)
        TestDataFactory.create_product_config(ProductConfig.TYPE_PRODUCT_TYPE, 'Hoodie')
        TestDataFactory.create_product_config(ProductConfig.TYPE_NECK_TYPE, 'V-Neck')

    def test_grouped_active_values_in_display_order(self):
        response = self.client.get('/api/product-config')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sizes'], ['S', 'L'])
        self.assertEqual(response.data['productTypes'], ['Hoodie'])
        self.assertEqual(response.data['neckTypes'], ['V-Neck'])
        self.assertEqual(response.data['colors'], [])

    def test_grouped_cache_invalidated_on_write(self):
        self.client.get('/api/product-config')
        TestDataFactory.create_product_config(ProductConfig.TYPE_COLOR, 'Maroon')
        response = self.client.get('/api/product-config')
        self.assertEqual(response.data['colors'], ['Maroon'])

    def test_list_filters(self):
        response = self.client.get('/api/product-config/all?config_type=size&active=true')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['config_value'] for row in response.data], ['S', 'L'])

    def test_defaults_require_manager(self):
        response = self.client.post('/api/product-config/defaults')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_defaults_skip_existing(self):
        self.client.authenticate_user(self.manager)
        response = self.client.post('/api/product-config/defaults')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        expected = sum(len(values) for values in DEFAULT_PRODUCT_CONFIG.values())
        # Hoodie, V-Neck, S, L and the inactive XXL already exist
        self.assertEqual(response.data['created'], expected - 5)

        response = self.client.post('/api/product-config/defaults')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['created'], 0)

    def test_ensure_config_values_appends_in_order(self):
        created = ensure_config_values(ProductConfig.TYPE_COLOR, ['Red', 'red', 'Blue'])
        self.assertEqual([c.config_value for c in created], ['Red', 'Blue'])
        self.assertEqual([c.display_order for c in created], [1, 3])
