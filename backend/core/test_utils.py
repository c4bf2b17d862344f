"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.catalog.models import ProductConfig
from backend.inventory.models import StockItem
from backend.orders.models import Order, OrderItem
from backend.parties.models import Agent
from decimal import Decimal
from django.utils import timezone
from datetime import timedelta
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(email=None, password='testpass123', name=None, role=User.ROLE_AGENT, **extra):
        """Create a test user (an agent login unless a role is given)"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6).lower()}@test.com'
        return User.objects.create_user(
            email=email,
            password=password,
            name=name or f'Test User {TestDataFactory.random_string(4)}',
            role=role,
            **extra
        )

    @staticmethod
    def create_manager(email=None, password='testpass123'):
        return TestDataFactory.create_user(email=email, password=password, role=User.ROLE_MANAGER, is_staff=True)

    @staticmethod
    def create_agent(user=None, first_name='Test', last_name=None, **fields):
        """Create an agent profile, optionally linked to a login"""
        last_name = last_name or f'Agent{TestDataFactory.random_string(4)}'
        defaults = {
            'email': f'{last_name.lower()}@agents.test',
            'phone': '5550100',
            'territory': 'North',
            'commission_rate': Decimal('5.00'),
            'target_sales': Decimal('10000.00'),
        }
        defaults.update(fields)
        return Agent.objects.create(user=user, first_name=first_name, last_name=last_name, **defaults)

    @staticmethod
    def create_product_config(config_type=ProductConfig.TYPE_PRODUCT_TYPE, config_value=None, display_order=1,
                              is_active=True):
        return ProductConfig.objects.create(
            config_type=config_type,
            config_value=config_value or f'Value {TestDataFactory.random_string(5)}',
            display_order=display_order,
            is_active=is_active,
        )

    @staticmethod
    def create_stock_item(product_type='T-shirt', color='White', size='M', quantity=20, neck_type='',
                          min_threshold=10, cost_per_unit=Decimal('4.00'), selling_price=Decimal('10.00')):
        """Create a test stock item"""
        return StockItem.objects.create(
            product_type=product_type,
            color=color,
            size=size,
            neck_type=neck_type,
            quantity=quantity,
            min_threshold=min_threshold,
            cost_per_unit=cost_per_unit,
            selling_price=selling_price,
        )

    @staticmethod
    def create_order(agent=None, created_by=None, customer_name=None, product_type='T-shirt',
                     total_quantity=10, total_amount=Decimal('100.00'), paid_amount=Decimal('0.00'),
                     order_status=Order.STATUS_PENDING, payment_status=Order.PAYMENT_PENDING,
                     delivery_in_days=5, **fields):
        """Create a flat order row without items"""
        today = timezone.localdate()
        return Order.objects.create(
            agent=agent,
            created_by=created_by,
            customer_name=customer_name or f'Customer {TestDataFactory.random_string(5)}',
            customer_phone='5550199',
            customer_whatsapp='5550199',
            product_type=product_type,
            product_color=fields.pop('product_color', 'White'),
            total_quantity=total_quantity,
            size_breakdown=fields.pop('size_breakdown', {'M': total_quantity}),
            delivery_date=fields.pop('delivery_date', today + timedelta(days=delivery_in_days)),
            event_date=fields.pop('event_date', today + timedelta(days=delivery_in_days + 3)),
            total_amount=total_amount,
            paid_amount=paid_amount,
            order_status=order_status,
            payment_status=payment_status,
            **fields
        )

    @staticmethod
    def create_order_item(order, product_type='T-shirt', color='White', size='M', quantity=5,
                          unit_price=Decimal('10.00')):
        return OrderItem.objects.create(
            order=order,
            product_type=product_type,
            color=color,
            size=size,
            quantity=quantity,
            unit_price=unit_price,
        )

    @staticmethod
    def order_payload(products=None, order_type=Order.TYPE_CUSTOM, paid_amount='0.00', **overrides):
        """Request body for POST /api/orders"""
        today = timezone.localdate()
        payload = {
            'customer': {
                'name': 'Jane Customer',
                'phone': '5550101',
                'whatsapp': '5550101',
                'address': {'street': '1 Main St', 'city': 'Springfield', 'state': 'IL', 'zipCode': '62701'},
            },
            'products': products or [{
                'product_type': 'T-shirt',
                'neck_type': '',
                'unit_price': '10.00',
                'variants': [
                    {'size': 'M', 'color': 'White', 'quantity': 3},
                    {'size': 'L', 'color': 'White', 'quantity': 2},
                ],
            }],
            'event_date': (today + timedelta(days=10)).isoformat(),
            'delivery_date': (today + timedelta(days=7)).isoformat(),
            'paid_amount': paid_amount,
            'order_type': order_type,
        }
        payload.update(overrides)
        return payload


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
