from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'role', 'phone', 'is_active', 'email_verified', 'created_at', 'updated_at']
        read_only_fields = ['role', 'created_at', 'updated_at']


class AuthUserSerializer(serializers.ModelSerializer):
    """Compact user payload returned alongside tokens"""
    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'role']


class UserCreateSerializer(serializers.ModelSerializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6, validators=[validate_password])
    name = serializers.CharField(max_length=255)

    class Meta:
        model = User
        fields = ['email', 'password', 'name', 'phone']

    def validate_email(self, value):
        return value.strip().lower()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name is required')
        return value

    def create(self, validated_data):
        password = validated_data.pop('password')
        # Self-registered accounts are always agents
        return User.objects.create_user(password=password, role=User.ROLE_AGENT, **validated_data)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate_email(self, value):
        return value.strip().lower()


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, min_length=6, validators=[validate_password])

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError('Current password is incorrect')
        return value
