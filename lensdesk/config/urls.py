"""
URL configuration for the LensDesk backend.

Every app mounts its routes under ``api/v1/``.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "LensDesk Admin Panel"
admin.site.site_title = "LensDesk Admin Portal"
admin.site.index_title = "Lens Retail Administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('lensdesk.core.urls')),
    path('api/v1/', include('lensdesk.locations.urls')),
    path('api/v1/', include('lensdesk.lenses.urls')),
    path('api/v1/', include('lensdesk.parties.urls')),
    path('api/v1/', include('lensdesk.pricing.urls')),
    path('api/v1/', include('lensdesk.sales.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
]
