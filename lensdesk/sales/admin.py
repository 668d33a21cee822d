from django.contrib import admin
from .models import SaleOrder


@admin.register(SaleOrder)
class SaleOrderAdmin(admin.ModelAdmin):
    list_display = ['order_no', 'customer', 'order_date', 'status', 'dispatch_status', 'urgent_order', 'lens_price', 'is_active']
    list_filter = ['status', 'dispatch_status', 'urgent_order', 'is_deleted', 'order_date']
    search_fields = ['order_no', 'customer_ref_no', 'customer__name', 'customer__code']
    raw_id_fields = ['customer', 'lens', 'assigned_person']
    readonly_fields = ['order_no', 'created_by', 'updated_by', 'created_at', 'updated_at']
    date_hierarchy = 'order_date'
