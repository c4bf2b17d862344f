from django.urls import path
from . import views

urlpatterns = [
    path('reports/analytics', views.sales_analytics, name='reports-analytics'),
    path('reports/summary', views.report_summary, name='reports-summary'),
    path('reports/dashboard', views.dashboard, name='reports-dashboard'),
    path('reports/export/<slug:report>', views.export_report, name='reports-export'),
]
