from django.urls import path
from .views import (
    CustomTokenRefreshView, register, login, user_me, logout, change_password,
)

urlpatterns = [
    # Auth endpoints
    path('auth/register', register, name='register'),
    path('auth/login', login, name='login'),
    path('auth/refresh', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me', user_me, name='user-me'),
    path('auth/logout', logout, name='logout'),
    path('auth/change-password', change_password, name='change-password'),
]
