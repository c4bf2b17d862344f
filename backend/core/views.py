from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.views import TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.models import update_last_login
from django.core.exceptions import ObjectDoesNotExist
from django.utils import timezone
from .exceptions import BadRequest
from .serializers import (
    AuthUserSerializer, UserCreateSerializer, LoginSerializer, PasswordChangeSerializer,
)
import logging

logger = logging.getLogger(__name__)

User = get_user_model()


class DressSyncTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Adds the claims the frontend reads straight from the token"""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['userId'] = user.id
        token['email'] = user.email
        token['role'] = user.role
        return token


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


def issue_tokens(user):
    refresh = DressSyncTokenObtainPairSerializer.get_token(user)
    return {
        'token': str(refresh.access_token),
        'refresh': str(refresh),
    }


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Self-service registration; new accounts get the agent role"""
    serializer = UserCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    email = serializer.validated_data['email']
    if User.objects.filter(email__iexact=email).exists():
        raise BadRequest('User already exists')

    user = serializer.save()
    logger.info(f"Registered agent account {user.email}")
    return Response({
        'success': True,
        'message': 'User registered successfully',
        'user': AuthUserSerializer(user).data,
        **issue_tokens(user),
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = authenticate(
        request,
        email=serializer.validated_data['email'],
        password=serializer.validated_data['password'],
    )
    if user is None:
        logger.info(f"Failed login for {serializer.validated_data['email']}")
        raise AuthenticationFailed('Invalid credentials')

    update_last_login(None, user)
    return Response({
        'success': True,
        'user': AuthUserSerializer(user).data,
        **issue_tokens(user),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user in the record shape used by the table API"""
    user = request.user
    return Response({
        'data': {
            'ID': user.id,
            'Email': user.email,
            'Name': user.name,
            'Role': user.role,
            'Phone': user.phone,
            'CreateTime': user.created_at,
            'IsManager': user.is_manager,
            'PasswordChanged': user.password_changed_at is not None,
        }
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def logout(request):
    """Tokens live client side; a posted refresh token is blacklisted"""
    refresh = request.data.get('refresh') if hasattr(request.data, 'get') else None
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
        except TokenError as e:
            logger.info(f"Logout with unusable refresh token: {e}")
    return Response({'success': True, 'message': 'Logged out successfully'})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request):
    serializer = PasswordChangeSerializer(data=request.data, context={'request': request})
    serializer.is_valid(raise_exception=True)

    user = request.user
    user.set_password(serializer.validated_data['new_password'])
    user.password_changed_at = timezone.now()
    user.save(update_fields=['password', 'password_changed_at', 'updated_at'])
    return Response({'success': True, 'message': 'Password updated successfully'})
