from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, logout, user_me, change_password,
    user_list_create, user_detail,
    department_list_create, department_detail, department_dropdown,
    audit_log_list, audit_log_detail,
    error_log_list, error_log_detail, error_log_stats,
)

urlpatterns = [
    # Auth endpoints
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/logout/', logout, name='logout'),
    path('auth/me/', user_me, name='user-me'),
    path('auth/change-password/', change_password, name='change-password'),

    # User endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/', user_detail, name='user-detail'),

    # Department endpoints
    path('departments/', department_list_create, name='department-list-create'),
    path('departments/dropdown/', department_dropdown, name='department-dropdown'),
    path('departments/<int:pk>/', department_detail, name='department-detail'),

    # Log endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),
    path('error-logs/', error_log_list, name='error-log-list'),
    path('error-logs/stats/', error_log_stats, name='error-log-stats'),
    path('error-logs/<int:pk>/', error_log_detail, name='error-log-detail'),
]
