from django.contrib import admin
from .models import Location, Tray


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ['name', 'location_code', 'is_active', 'is_deleted', 'created_at']
    list_filter = ['is_active', 'is_deleted', 'created_at']
    search_fields = ['name', 'location_code', 'description']
    ordering = ['name']


@admin.register(Tray)
class TrayAdmin(admin.ModelAdmin):
    list_display = ['name', 'tray_code', 'location', 'capacity', 'is_active', 'is_deleted']
    list_filter = ['is_active', 'is_deleted', 'location']
    search_fields = ['name', 'tray_code', 'location__name']
    ordering = ['name']
