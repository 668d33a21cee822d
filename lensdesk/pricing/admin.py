from django.contrib import admin
from .models import PriceMapping


@admin.register(PriceMapping)
class PriceMappingAdmin(admin.ModelAdmin):
    list_display = ['customer', 'lens_price', 'discount_rate', 'discount_price', 'updated_at']
    list_filter = ['lens_price__lens__brand', 'lens_price__coating']
    search_fields = ['customer__code', 'customer__name', 'lens_price__lens__lens_name', 'lens_price__lens__product_code']
    raw_id_fields = ['customer', 'lens_price']
    readonly_fields = ['discount_price', 'created_by', 'updated_by', 'created_at', 'updated_at']
