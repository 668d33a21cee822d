from django.urls import path
from . import views

urlpatterns = [
    path('sale-orders/', views.sale_order_list_create, name='sale-order-list-create'),
    path('sale-orders/stats/', views.sale_order_stats, name='sale-order-stats'),
    path('sale-orders/<int:pk>/', views.sale_order_detail, name='sale-order-detail'),
    path('sale-orders/<int:pk>/status/', views.sale_order_status, name='sale-order-status'),
    path('sale-orders/<int:pk>/dispatch/', views.sale_order_dispatch, name='sale-order-dispatch'),
]
