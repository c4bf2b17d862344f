from django.urls import path
from .views import install_status, test_database, install

urlpatterns = [
    path('install/status', install_status, name='install-status'),
    path('install/test-db', test_database, name='install-test-db'),
    path('install/install', install, name='install'),
]
