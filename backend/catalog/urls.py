from django.urls import path
from .views import product_config_grouped, product_config_list, product_config_defaults

urlpatterns = [
    path('product-config', product_config_grouped, name='product-config-grouped'),
    path('product-config/all', product_config_list, name='product-config-list'),
    path('product-config/defaults', product_config_defaults, name='product-config-defaults'),
]
