from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404
from smtplib import SMTPException
from backend.core.permissions import IsManager
from .models import Agent
from .passwords import email_agent_password, set_agent_password
from .serializers import AgentSerializer, AgentPasswordSerializer
import logging

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def agent_list(request):
    """List agents with optional status / search filtering"""
    queryset = Agent.objects.all()
    agent_status = request.query_params.get('status')
    search = request.query_params.get('search', '').strip()

    if agent_status:
        queryset = queryset.filter(status=agent_status)
    if search:
        queryset = queryset.filter(
            Q(first_name__icontains=search) |
            Q(last_name__icontains=search) |
            Q(email__icontains=search) |
            Q(agent_code__icontains=search) |
            Q(territory__icontains=search)
        )

    serializer = AgentSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def agent_me(request):
    """Agent profile linked to the logged-in user"""
    agent = Agent.objects.filter(user=request.user).first()
    if agent is None:
        agent = get_object_or_404(Agent, email__iexact=request.user.email)
    return Response(AgentSerializer(agent).data)


@api_view(['POST'])
@permission_classes([IsManager])
def agent_password(request, pk):
    """
    Issue or reset an agent's login password.
    Body: {password?, send_email?}; a 12 character password is generated
    when none is given.
    """
    agent = get_object_or_404(Agent, pk=pk)
    serializer = AgentPasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user, password, created = set_agent_password(agent, serializer.validated_data.get('password') or None)

    email_sent = False
    if serializer.validated_data['send_email']:
        try:
            email_sent = email_agent_password(agent, password)
        except (SMTPException, OSError) as e:
            logger.error(f"Could not email password to {agent.email}: {e}")

    return Response({
        'success': True,
        'message': 'Login created' if created else 'Password reset',
        'user_id': user.id,
        'email': user.email,
        'temporary_password': password,
        'email_sent': email_sent,
    }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)
