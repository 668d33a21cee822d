import django_filters
from django.db.models import Q
from .models import LensProduct


class LensProductFilter(django_filters.FilterSet):
    """Filters for the lens product list"""
    brand = django_filters.NumberFilter(field_name='brand_id')
    category = django_filters.NumberFilter(field_name='category_id')
    material = django_filters.NumberFilter(field_name='material_id')
    type = django_filters.NumberFilter(field_name='type_id')
    is_active = django_filters.BooleanFilter(field_name='is_active')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = LensProduct
        fields = ['brand', 'category', 'material', 'type', 'is_active', 'search']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(lens_name__icontains=value) |
            Q(product_code__icontains=value) |
            Q(brand__name__icontains=value)
        )
