import django_filters
from django.db.models import Q
from .models import PriceMapping


class PriceMappingFilter(django_filters.FilterSet):
    """Filters for the price mapping list"""
    customer = django_filters.NumberFilter(field_name='customer_id')
    lens_price = django_filters.NumberFilter(field_name='lens_price_id')
    product = django_filters.NumberFilter(field_name='lens_price__lens_id')
    brand = django_filters.NumberFilter(field_name='lens_price__lens__brand_id')
    min_rate = django_filters.NumberFilter(field_name='discount_rate', lookup_expr='gte')
    max_rate = django_filters.NumberFilter(field_name='discount_rate', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = PriceMapping
        fields = ['customer', 'lens_price', 'product', 'brand', 'min_rate', 'max_rate', 'search']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(customer__name__icontains=value) |
            Q(customer__code__icontains=value) |
            Q(lens_price__lens__lens_name__icontains=value) |
            Q(lens_price__lens__product_code__icontains=value) |
            Q(lens_price__coating__name__icontains=value)
        )
