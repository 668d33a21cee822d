import django_filters
from .models import AuditLog, ErrorLog


class AuditLogFilter(django_filters.FilterSet):
    """Filters for the audit log list"""
    action = django_filters.CharFilter(field_name='action', lookup_expr='iexact')
    model = django_filters.CharFilter(field_name='model_name', lookup_expr='iexact')
    object_id = django_filters.CharFilter(field_name='object_id')
    user = django_filters.NumberFilter(field_name='user_id')
    success = django_filters.BooleanFilter(field_name='success')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = AuditLog
        fields = ['action', 'model', 'object_id', 'user', 'success', 'date_from', 'date_to']


class ErrorLogFilter(django_filters.FilterSet):
    severity = django_filters.CharFilter(field_name='severity', lookup_expr='iexact')
    error_type = django_filters.CharFilter(field_name='error_type', lookup_expr='iexact')
    status_code = django_filters.NumberFilter(field_name='status_code')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = ErrorLog
        fields = ['severity', 'error_type', 'status_code', 'date_from', 'date_to']
