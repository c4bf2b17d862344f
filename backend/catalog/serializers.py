from rest_framework import serializers
from .models import ProductConfig


class ProductConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductConfig
        fields = ['id', 'config_type', 'config_value', 'display_order', 'is_active', 'created_date']
        read_only_fields = ['created_date']

    def validate_config_value(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Configuration value cannot be empty')
        return value

    def validate(self, attrs):
        config_type = attrs.get('config_type', getattr(self.instance, 'config_type', None))
        config_value = attrs.get('config_value', getattr(self.instance, 'config_value', None))
        if config_type and config_value:
            duplicates = ProductConfig.objects.filter(
                config_type=config_type,
                config_value__iexact=config_value,
            )
            if self.instance is not None:
                duplicates = duplicates.exclude(pk=self.instance.pk)
            if duplicates.exists():
                raise serializers.ValidationError({'config_value': 'This configuration value already exists'})
        return attrs
