from django.urls import path
from . import views

urlpatterns = [
    # Discount cascade
    path('lens-products/discount-hierarchy/<int:customer_id>/', views.discount_hierarchy, name='discount-hierarchy'),
    path('lens-products/apply-discounts/', views.apply_discounts, name='apply-discounts'),

    # Price mappings
    path('price-mappings/', views.price_mapping_list_create, name='price-mapping-list-create'),
    path('price-mappings/bulk-update/', views.price_mapping_bulk_update, name='price-mapping-bulk-update'),
    path('price-mappings/bulk-upsert/', views.price_mapping_bulk_upsert, name='price-mapping-bulk-upsert'),
    path('price-mappings/bulk-delete/', views.price_mapping_bulk_delete, name='price-mapping-bulk-delete'),
    path('price-mappings/calculate-cost/', views.calculate_cost, name='price-mapping-calculate-cost'),
    path('price-mappings/customer/<int:customer_id>/', views.price_mapping_customer, name='price-mapping-customer'),
    path('price-mappings/<int:pk>/', views.price_mapping_detail, name='price-mapping-detail'),
]
