from django.urls import path
from .views import (
    customer_list_create, customer_detail, customer_dropdown,
    vendor_list_create, vendor_detail, vendor_dropdown,
    business_category_list_create, business_category_detail, business_category_dropdown,
)

urlpatterns = [
    path('customers/', customer_list_create, name='customer-list-create'),
    path('customers/dropdown/', customer_dropdown, name='customer-dropdown'),
    path('customers/<int:pk>/', customer_detail, name='customer-detail'),
    path('vendors/', vendor_list_create, name='vendor-list-create'),
    path('vendors/dropdown/', vendor_dropdown, name='vendor-dropdown'),
    path('vendors/<int:pk>/', vendor_detail, name='vendor-detail'),
    path('business-categories/', business_category_list_create, name='business-category-list-create'),
    path('business-categories/dropdown/', business_category_dropdown, name='business-category-dropdown'),
    path('business-categories/<int:pk>/', business_category_detail, name='business-category-detail'),
]
