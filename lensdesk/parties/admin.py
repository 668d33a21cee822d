from django.contrib import admin
from .models import BusinessCategory, Customer, Vendor


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'shop_name', 'phone', 'city', 'credit_limit', 'outstanding_credit', 'is_active']
    list_filter = ['is_active', 'is_deleted', 'business_category', 'city', 'state']
    search_fields = ['code', 'name', 'shop_name', 'phone', 'email', 'gstin']
    ordering = ['name']


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'shop_name', 'category', 'phone', 'city', 'is_active']
    list_filter = ['is_active', 'is_deleted', 'category', 'city']
    search_fields = ['code', 'name', 'shop_name', 'phone', 'email', 'gstin']
    ordering = ['name']


@admin.register(BusinessCategory)
class BusinessCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'description', 'is_active', 'created_at']
    list_filter = ['is_active', 'is_deleted']
    search_fields = ['name', 'description']
    ordering = ['name']
