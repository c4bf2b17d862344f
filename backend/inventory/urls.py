from django.urls import path
from .views import (
    stock_list, stock_detail, stock_low, stock_availability, stock_adjust, stock_movement_list,
)

urlpatterns = [
    path('stock', stock_list, name='stock-list'),
    path('stock/low', stock_low, name='stock-low'),
    path('stock/availability', stock_availability, name='stock-availability'),
    path('stock/adjust', stock_adjust, name='stock-adjust'),
    path('stock/movements', stock_movement_list, name='stock-movement-list'),
    path('stock/<int:pk>', stock_detail, name='stock-detail'),
]
