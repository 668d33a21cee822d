from django.contrib import admin
from .models import (
    LensBrand, LensCategory, LensMaterial, LensType, LensCoating,
    LensTinting, LensFitting, LensDia, LensProduct, LensPrice
)


class LensAttributeAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_active', 'is_deleted', 'created_at']
    list_filter = ['is_active', 'is_deleted']
    search_fields = ['name', 'description']
    ordering = ['name']


admin.site.register(LensBrand, LensAttributeAdmin)
admin.site.register(LensCategory, LensAttributeAdmin)
admin.site.register(LensMaterial, LensAttributeAdmin)
admin.site.register(LensType, LensAttributeAdmin)
admin.site.register(LensDia, LensAttributeAdmin)


@admin.register(LensCoating)
class LensCoatingAdmin(LensAttributeAdmin):
    list_display = ['name', 'short_name', 'is_active', 'is_deleted', 'created_at']
    search_fields = ['name', 'short_name']


@admin.register(LensTinting)
class LensTintingAdmin(LensAttributeAdmin):
    list_display = ['name', 'short_name', 'tinting_price', 'is_active', 'is_deleted']


@admin.register(LensFitting)
class LensFittingAdmin(LensAttributeAdmin):
    list_display = ['name', 'short_name', 'fitting_price', 'is_active', 'is_deleted']


class LensPriceInline(admin.TabularInline):
    model = LensPrice
    extra = 0
    fields = ['coating', 'price', 'is_active', 'is_deleted']


@admin.register(LensProduct)
class LensProductAdmin(admin.ModelAdmin):
    list_display = ['lens_name', 'product_code', 'brand', 'category', 'material', 'type', 'is_active']
    list_filter = ['brand', 'category', 'material', 'type', 'is_active', 'is_deleted']
    search_fields = ['lens_name', 'product_code', 'brand__name']
    ordering = ['lens_name']
    inlines = [LensPriceInline]


@admin.register(LensPrice)
class LensPriceAdmin(admin.ModelAdmin):
    list_display = ['lens', 'coating', 'price', 'is_active', 'is_deleted', 'updated_at']
    list_filter = ['coating', 'is_active', 'is_deleted']
    search_fields = ['lens__lens_name', 'lens__product_code', 'coating__name']
