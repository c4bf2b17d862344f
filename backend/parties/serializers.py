from rest_framework import serializers
from backend.core.models import User
from .models import Agent


class AgentSerializer(serializers.ModelSerializer):
    user_id = serializers.PrimaryKeyRelatedField(
        source='user', queryset=User.objects.all(), allow_null=True, required=False,
    )
    agent_code = serializers.CharField(max_length=20, required=False, allow_blank=True)
    full_name = serializers.CharField(read_only=True)
    has_login = serializers.SerializerMethodField()

    class Meta:
        model = Agent
        fields = ['id', 'user_id', 'agent_code', 'first_name', 'last_name', 'full_name', 'email', 'phone',
                  'territory', 'commission_rate', 'hire_date', 'status', 'target_sales', 'has_login',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_has_login(self, obj):
        return obj.user_id is not None

    def validate_agent_code(self, value):
        value = (value or '').strip().upper()
        if value:
            duplicates = Agent.objects.filter(agent_code=value)
            if self.instance is not None:
                duplicates = duplicates.exclude(pk=self.instance.pk)
            if duplicates.exists():
                raise serializers.ValidationError('Agent code already exists')
        return value

    def validate_commission_rate(self, value):
        if value < 0 or value > 100:
            raise serializers.ValidationError('Commission rate must be between 0 and 100')
        return value

    def validate_target_sales(self, value):
        if value < 0:
            raise serializers.ValidationError('Target sales cannot be negative')
        return value

    def validate(self, attrs):
        for field in ('first_name', 'last_name', 'phone'):
            if field in attrs:
                attrs[field] = attrs[field].strip()
                if not attrs[field]:
                    raise serializers.ValidationError({field: 'This field may not be blank.'})
        if 'email' in attrs:
            attrs['email'] = attrs['email'].strip().lower()
        return attrs


class AgentPasswordSerializer(serializers.Serializer):
    password = serializers.CharField(required=False, allow_blank=True, min_length=6, write_only=True)
    send_email = serializers.BooleanField(required=False, default=False)
