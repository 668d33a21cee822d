from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Department, AuditLog, ErrorLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'usercode', 'email', 'first_name', 'last_name', 'is_active', 'is_staff', 'date_joined']
    list_filter = ['is_active', 'is_staff', 'is_superuser', 'department', 'blood_group', 'date_joined']
    search_fields = ['username', 'usercode', 'email', 'first_name', 'last_name', 'phone']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Staff Details', {'fields': ('usercode', 'phone', 'alternate_phone', 'address', 'blood_group', 'department')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Staff Details', {'fields': ('usercode', 'phone')}),
    )


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ['name', 'description', 'is_active', 'created_at']
    list_filter = ['is_active', 'is_deleted']
    search_fields = ['name', 'description']
    ordering = ['name']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['user', 'action', 'model_name', 'object_id', 'success', 'ip_address', 'created_at']
    list_filter = ['action', 'model_name', 'success', 'created_at']
    search_fields = ['user__username', 'model_name', 'object_id', 'object_name']
    ordering = ['-created_at']
    readonly_fields = ['user', 'action', 'model_name', 'object_id', 'object_name', 'old_values',
                       'new_values', 'changes', 'ip_address', 'user_agent', 'method', 'endpoint',
                       'status_code', 'success', 'error_message', 'created_at']


@admin.register(ErrorLog)
class ErrorLogAdmin(admin.ModelAdmin):
    list_display = ['severity', 'error_type', 'status_code', 'method', 'endpoint', 'created_at']
    list_filter = ['severity', 'error_type', 'status_code', 'created_at']
    search_fields = ['message', 'endpoint', 'code']
    ordering = ['-created_at']
    readonly_fields = ['error_type', 'message', 'stack', 'code', 'status_code', 'method', 'endpoint',
                       'request_body', 'params', 'ip_address', 'user_agent', 'user', 'severity', 'created_at']
