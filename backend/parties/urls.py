from django.urls import path
from .views import agent_list, agent_me, agent_password

urlpatterns = [
    path('agents', agent_list, name='agent-list'),
    path('agents/me', agent_me, name='agent-me'),
    path('agents/<int:pk>/password', agent_password, name='agent-password'),
]
