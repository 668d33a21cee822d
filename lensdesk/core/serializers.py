from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, Department, AuditLog, ErrorLog


def validate_live_department(value):
    if value is not None and (value.is_deleted or not value.is_active):
        raise serializers.ValidationError("Selected department does not exist or is inactive")
    return value


class UserSerializer(serializers.ModelSerializer):
    department_name = serializers.CharField(source='department.name', read_only=True, default=None)

    class Meta:
        model = User
        fields = ['id', 'username', 'usercode', 'email', 'first_name', 'last_name', 'phone',
                  'alternate_phone', 'address', 'blood_group', 'department', 'department_name', 'is_active',
                  'is_staff', 'is_superuser', 'last_login', 'created_at', 'updated_at']
        read_only_fields = ['is_superuser', 'last_login', 'created_at', 'updated_at']

    def validate_phone(self, value):
        if value and not (value.isdigit() and 10 <= len(value) <= 15):
            raise serializers.ValidationError("Phone number must be 10-15 digits")
        return value

    def validate_department(self, value):
        return validate_live_department(value)


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'usercode', 'email', 'password', 'password_confirm', 'first_name',
                  'last_name', 'phone', 'alternate_phone', 'address', 'blood_group', 'department', 'is_staff']

    def validate_phone(self, value):
        if value and not (value.isdigit() and 10 <= len(value) <= 15):
            raise serializers.ValidationError("Phone number must be 10-15 digits")
        return value

    def validate_department(self, value):
        return validate_live_department(value)

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class ChangePasswordSerializer(serializers.Serializer):
    old_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, validators=[validate_password])

    def validate_old_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect")
        return value


class AuditLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'username', 'action', 'model_name', 'object_id', 'object_name',
                  'old_values', 'new_values', 'changes', 'ip_address', 'user_agent', 'method',
                  'endpoint', 'status_code', 'success', 'error_message', 'created_at']


class ErrorLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = ErrorLog
        fields = ['id', 'error_type', 'message', 'stack', 'code', 'status_code', 'method',
                  'endpoint', 'request_body', 'params', 'ip_address', 'user_agent', 'user',
                  'username', 'severity', 'created_at']


class DepartmentSerializer(serializers.ModelSerializer):
    user_count = serializers.SerializerMethodField()

    class Meta:
        model = Department
        fields = ['id', 'name', 'description', 'is_active', 'user_count',
                  'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value

    def get_user_count(self, obj):
        return obj.users.filter(is_active=True).count()
