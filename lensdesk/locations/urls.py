from django.urls import path
from .views import (
    location_list_create, location_detail, location_dropdown, location_trays,
    tray_list_create, tray_detail, tray_dropdown,
)

urlpatterns = [
    path('locations/', location_list_create, name='location-list-create'),
    path('locations/dropdown/', location_dropdown, name='location-dropdown'),
    path('locations/<int:pk>/', location_detail, name='location-detail'),
    path('locations/<int:pk>/trays/', location_trays, name='location-trays'),
    path('trays/', tray_list_create, name='tray-list-create'),
    path('trays/dropdown/', tray_dropdown, name='tray-dropdown'),
    path('trays/<int:pk>/', tray_detail, name='tray-detail'),
]
