from django.urls import path
from .views import table_page, table_create, table_update, table_delete, upload_file

urlpatterns = [
    path('table/<int:table_id>/page', table_page, name='table-page'),
    path('table/<int:table_id>/create', table_create, name='table-create'),
    path('table/<int:table_id>/update', table_update, name='table-update'),
    path('table/<int:table_id>/delete', table_delete, name='table-delete'),
    path('upload', upload_file, name='upload'),
]
