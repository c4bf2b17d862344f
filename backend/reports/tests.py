"""
Test suite for Reports module
Tests: sales analytics, agent performance, monthly sales, product analysis,
revenue metrics, dashboard and CSV export
"""
from datetime import date
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.orders.models import Order
from backend.reports import analytics


class AnalyticsTests(TestCase):

    def setUp(self):
        cache.clear()
        self.alice = TestDataFactory.create_agent(
            first_name='Alice', last_name='Adams', target_sales=Decimal('1000.00'), commission_rate=Decimal('10.00'),
        )
        self.bob = TestDataFactory.create_agent(first_name='Bob', last_name='Brown', target_sales=Decimal('0.00'))
        TestDataFactory.create_order(
            agent=self.alice, total_amount=Decimal('300.00'), paid_amount=Decimal('300.00'),
            order_status=Order.STATUS_DELIVERED, payment_status=Order.PAYMENT_COMPLETE, delivery_in_days=0,
        )
        TestDataFactory.create_order(agent=self.alice, total_amount=Decimal('100.00'), delivery_in_days=0)
        TestDataFactory.create_order(
            agent=self.bob, total_amount=Decimal('200.00'), paid_amount=Decimal('50.00'),
            order_status=Order.STATUS_IN_PRODUCTION, payment_status=Order.PAYMENT_PARTIAL, delivery_in_days=0,
        )
        TestDataFactory.create_stock_item('T-shirt', cost_per_unit=Decimal('4.00'))
        TestDataFactory.create_stock_item('T-shirt', size='L', cost_per_unit=Decimal('0.00'))

    def test_sales_analytics(self):
        self.assertEqual(analytics.sales_analytics(), {
            'totalOrders': 3,
            'totalRevenue': 600.0,
            'pendingOrders': 2,
            'completedOrders': 1,
            'averageOrderValue': 200.0,
        })

    def test_sales_analytics_for_agent(self):
        result = analytics.sales_analytics(self.alice.id)
        self.assertEqual(result['totalOrders'], 2)
        self.assertEqual(result['totalRevenue'], 400.0)

    def test_empty_analytics(self):
        result = analytics.sales_analytics(0)
        self.assertEqual(result['totalOrders'], 0)
        self.assertEqual(result['averageOrderValue'], 0.0)

    def test_agent_performance(self):
        alice, bob = analytics.agent_performance()
        self.assertEqual(alice['agentName'], 'Alice Adams')
        self.assertEqual(alice['ordersCount'], 2)
        self.assertEqual(alice['totalSales'], 400.0)
        self.assertEqual(alice['achievement'], 40.0)
        self.assertEqual(alice['commission'], 40.0)
        # No target means no achievement figure
        self.assertEqual(bob['achievement'], 0.0)

    def test_sales_by_month(self):
        today = timezone.localdate()
        months = analytics.sales_by_month()
        self.assertEqual(len(months), 12)
        self.assertEqual(months[-1]['month'], today.strftime('%b %Y'))
        self.assertEqual(months[-1]['orders'], 3)
        self.assertEqual(months[-1]['revenue'], 600.0)
        self.assertTrue(all(m['orders'] == 0 for m in months[:-1]))

    def test_month_starts_cross_year(self):
        months = analytics._month_starts(date(2024, 2, 15), count=3)
        self.assertEqual(months, [date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)])

    def test_product_analysis_uses_average_cost(self):
        (row,) = analytics.product_analysis()
        self.assertEqual(row['productType'], 'T-shirt')
        self.assertEqual(row['totalSold'], 30)
        self.assertEqual(row['averagePrice'], 20.0)
        self.assertEqual(row['profitMargin'], 80.0)

    def test_revenue_metrics(self):
        metrics = analytics.revenue_metrics()
        self.assertEqual(metrics['totalRevenue'], 600.0)
        self.assertEqual(metrics['pendingPayments'], 250.0)
        self.assertEqual(metrics['completedPayments'], 300.0)
        self.assertEqual(metrics['profitMargin'], 80.0)

    def test_cache_invalidated_by_new_order(self):
        self.assertEqual(analytics.sales_analytics()['totalOrders'], 3)
        TestDataFactory.create_order(agent=self.bob)
        self.assertEqual(analytics.sales_analytics()['totalOrders'], 4)


class ReportsAPITests(TestCase):

    def setUp(self):
        cache.clear()
        self.manager = TestDataFactory.create_manager()
        self.agent_user = TestDataFactory.create_user()
        self.agent = TestDataFactory.create_agent(user=self.agent_user, first_name='Alice')
        self.other = TestDataFactory.create_agent(first_name='Bob')

        self.own_order = TestDataFactory.create_order(agent=self.agent, total_amount=Decimal('120.00'))
        TestDataFactory.create_order(agent=self.other, total_amount=Decimal('80.00'))
        self.low = TestDataFactory.create_stock_item('Jersey', 'Green', 'S', quantity=2)

        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_manager_analytics(self):
        response = self.client.get('/api/reports/analytics')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalOrders'], 2)

        response = self.client.get(f'/api/reports/analytics?agent={self.other.id}')
        self.assertEqual(response.data['totalRevenue'], 80.0)

    def test_agent_analytics_pinned_to_own_profile(self):
        self.client.authenticate_user(self.agent_user)
        response = self.client.get(f'/api/reports/analytics?agent={self.other.id}')
        self.assertEqual(response.data['totalOrders'], 1)
        self.assertEqual(response.data['totalRevenue'], 120.0)

    def test_bad_agent_param(self):
        response = self.client.get('/api/reports/analytics?agent=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_summary_requires_manager(self):
        self.client.authenticate_user(self.agent_user)
        response = self.client.get('/api/reports/summary')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Manager access required')

    def test_summary(self):
        response = self.client.get('/api/reports/summary')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            set(response.data), {'agentPerformance', 'salesByMonth', 'productAnalysis', 'revenueMetrics'},
        )
        self.assertEqual(len(response.data['salesByMonth']), 12)
        self.assertEqual(len(response.data['agentPerformance']), 2)

    def test_dashboard_for_agent(self):
        self.client.authenticate_user(self.agent_user)
        response = self.client.get('/api/reports/dashboard')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['analytics']['totalOrders'], 1)
        self.assertEqual([row['id'] for row in response.data['lowStock']], [self.low.id])
        self.assertEqual([row['id'] for row in response.data['upcomingDeliveries']], [self.own_order.id])

    def test_dashboard_for_agent_without_profile(self):
        walk_in = TestDataFactory.create_user()
        created = TestDataFactory.create_order(created_by=walk_in)
        self.client.authenticate_user(walk_in)
        response = self.client.get('/api/reports/dashboard')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data['upcomingDeliveries']], [created.id])

    def test_dashboard_for_manager_by_agent(self):
        response = self.client.get(f'/api/reports/dashboard?agent={self.agent.id}')
        self.assertEqual([row['id'] for row in response.data['upcomingDeliveries']], [self.own_order.id])

    def test_export_csv(self):
        response = self.client.get('/api/reports/export/agent-performance')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/csv')
        self.assertIn('attachment; filename="agent-performance-', response['Content-Disposition'])

        lines = response.content.decode().strip().splitlines()
        self.assertEqual(lines[0], 'agentCode,agentName,ordersCount,totalSales,target,achievement,commission')
        self.assertEqual(len(lines), 3)

    def test_export_sales_by_month(self):
        response = self.client.get('/api/reports/export/sales-by-month')
        self.assertEqual(len(response.content.decode().strip().splitlines()), 13)

    def test_export_unknown_report(self):
        response = self.client.get('/api/reports/export/inventory')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Unknown report: inventory')
