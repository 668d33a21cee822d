import django_filters
from django.db.models import Q
from .models import SaleOrder


class SaleOrderFilter(django_filters.FilterSet):
    """Filters for the sale order list"""
    status = django_filters.ChoiceFilter(choices=SaleOrder.STATUS_CHOICES)
    dispatch_status = django_filters.ChoiceFilter(choices=SaleOrder.DISPATCH_STATUS_CHOICES)
    customer = django_filters.NumberFilter(field_name='customer_id')
    assigned_person = django_filters.NumberFilter(field_name='assigned_person_id')
    urgent = django_filters.BooleanFilter(field_name='urgent_order')
    date_from = django_filters.DateFilter(field_name='order_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='order_date', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = SaleOrder
        fields = ['status', 'dispatch_status', 'customer', 'assigned_person', 'urgent', 'date_from', 'date_to', 'search']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(order_no__icontains=value) |
            Q(customer_ref_no__icontains=value) |
            Q(customer__name__icontains=value) |
            Q(customer__code__icontains=value)
        )
