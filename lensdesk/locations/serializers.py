from rest_framework import serializers
from .models import Location, Tray


class LocationSerializer(serializers.ModelSerializer):
    tray_count = serializers.SerializerMethodField()

    class Meta:
        model = Location
        fields = ['id', 'name', 'location_code', 'description', 'is_active', 'tray_count',
                  'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']
        # uniqueness is checked by the view (409 DUPLICATE_CODE)
        extra_kwargs = {'location_code': {'validators': []}}

    def get_tray_count(self, obj):
        return obj.trays.filter(is_deleted=False).count()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Location name is required")
        return value

    def validate_location_code(self, value):
        value = value.strip().upper()
        if not value:
            raise serializers.ValidationError("Location code is required")
        return value


class TraySerializer(serializers.ModelSerializer):
    location_name = serializers.CharField(source='location.name', read_only=True)
    location_code = serializers.CharField(source='location.location_code', read_only=True)

    class Meta:
        model = Tray
        fields = ['id', 'name', 'tray_code', 'description', 'capacity', 'location', 'location_name',
                  'location_code', 'is_active', 'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']
        extra_kwargs = {'tray_code': {'validators': []}}

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Tray name is required")
        return value

    def validate_tray_code(self, value):
        value = value.strip().upper()
        if not value:
            raise serializers.ValidationError("Tray code is required")
        return value
