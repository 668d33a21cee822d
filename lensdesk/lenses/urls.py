from django.urls import path
from . import views

urlpatterns = [
    # Brands
    path('lens-brands/', views.lens_brand_list_create, name='lens-brand-list-create'),
    path('lens-brands/dropdown/', views.lens_brand_dropdown, name='lens-brand-dropdown'),
    path('lens-brands/stats/', views.lens_brand_stats, name='lens-brand-stats'),
    path('lens-brands/<int:pk>/', views.lens_brand_detail, name='lens-brand-detail'),

    # Categories
    path('lens-categories/', views.lens_category_list_create, name='lens-category-list-create'),
    path('lens-categories/dropdown/', views.lens_category_dropdown, name='lens-category-dropdown'),
    path('lens-categories/<int:pk>/', views.lens_category_detail, name='lens-category-detail'),

    # Materials
    path('lens-materials/', views.lens_material_list_create, name='lens-material-list-create'),
    path('lens-materials/dropdown/', views.lens_material_dropdown, name='lens-material-dropdown'),
    path('lens-materials/<int:pk>/', views.lens_material_detail, name='lens-material-detail'),

    # Types
    path('lens-types/', views.lens_type_list_create, name='lens-type-list-create'),
    path('lens-types/dropdown/', views.lens_type_dropdown, name='lens-type-dropdown'),
    path('lens-types/<int:pk>/', views.lens_type_detail, name='lens-type-detail'),

    # Coatings
    path('lens-coatings/', views.lens_coating_list_create, name='lens-coating-list-create'),
    path('lens-coatings/dropdown/', views.lens_coating_dropdown, name='lens-coating-dropdown'),
    path('lens-coatings/<int:pk>/', views.lens_coating_detail, name='lens-coating-detail'),

    # Tintings
    path('lens-tintings/', views.lens_tinting_list_create, name='lens-tinting-list-create'),
    path('lens-tintings/dropdown/', views.lens_tinting_dropdown, name='lens-tinting-dropdown'),
    path('lens-tintings/<int:pk>/', views.lens_tinting_detail, name='lens-tinting-detail'),

    # Fittings
    path('lens-fittings/', views.lens_fitting_list_create, name='lens-fitting-list-create'),
    path('lens-fittings/dropdown/', views.lens_fitting_dropdown, name='lens-fitting-dropdown'),
    path('lens-fittings/<int:pk>/', views.lens_fitting_detail, name='lens-fitting-detail'),

    # Dias
    path('lens-dias/', views.lens_dia_list_create, name='lens-dia-list-create'),
    path('lens-dias/dropdown/', views.lens_dia_dropdown, name='lens-dia-dropdown'),
    path('lens-dias/<int:pk>/', views.lens_dia_detail, name='lens-dia-detail'),

    # Products and coating prices
    path('lens-products/', views.lens_product_list_create, name='lens-product-list-create'),
    path('lens-products/dropdown/', views.lens_product_dropdown, name='lens-product-dropdown'),
    path('lens-products/<int:pk>/', views.lens_product_detail, name='lens-product-detail'),
    path('lens-products/<int:pk>/prices/', views.lens_product_prices, name='lens-product-prices'),
    path('lens-prices/<int:pk>/', views.lens_price_detail, name='lens-price-detail'),
]
