"""
URL configuration for the DressSync backend.

Every API route lives under /api/ without a trailing slash; uploaded files
are served from /uploads/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "DressSync Admin Panel"
admin.site.site_title = "DressSync Admin Portal"
admin.site.index_title = "Welcome to DressSync"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('backend.core.urls')),
    path('api/', include('backend.install.urls')),
    path('api/', include('backend.tables.urls')),
    path('api/', include('backend.catalog.urls')),
    path('api/', include('backend.inventory.urls')),
    path('api/', include('backend.parties.urls')),
    path('api/', include('backend.orders.urls')),
    path('api/', include('backend.reports.urls')),
    re_path(r'^uploads/(?P<path>.*)$', serve, {'document_root': settings.UPLOAD_ROOT}),
]
