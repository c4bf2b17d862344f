from django.urls import path
from .views import (
    order_list_create, order_detail, order_status_update, order_duplicates, order_upcoming,
)

urlpatterns = [
    path('orders', order_list_create, name='order-list-create'),
    path('orders/duplicates', order_duplicates, name='order-duplicates'),
    path('orders/upcoming', order_upcoming, name='order-upcoming'),
    path('orders/<int:pk>', order_detail, name='order-detail'),
    path('orders/<int:pk>/status', order_status_update, name='order-status-update'),
]
