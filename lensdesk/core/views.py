import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import RefreshToken
from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from .cache_utils import cached_dropdown
from .crud import create_master, update_master, delete_master
from .filters import AuditLogFilter, ErrorLogFilter
from .models import Department, AuditLog, ErrorLog
from .pagination import paginate, apply_search, apply_active_filter, get_live_or_404
from .serializers import (
    UserSerializer, UserCreateSerializer, ChangePasswordSerializer, DepartmentSerializer,
    AuditLogSerializer, ErrorLogSerializer
)
from .utils import create_audit_log, snapshot

logger = logging.getLogger('lensdesk.core')

User = get_user_model()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        request = self.context.get('request')
        try:
            data = super().validate(attrs)
        except AuthenticationFailed as e:
            username = attrs.get(self.username_field, '')
            logger.warning(f"Failed login attempt for '{username}'")
            create_audit_log(request, 'LOGIN_FAILED', 'User', username or '-', object_name=username,
                             status_code=status.HTTP_401_UNAUTHORIZED, success=False,
                             error_message=str(e.detail))
            raise
        # Ensure user is active
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        create_audit_log(request, 'LOGIN', 'User', self.user.pk, user=self.user,
                         object_name=self.user.username, status_code=status.HTTP_200_OK)
        logger.info(f"User {self.user.username} logged in")
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['usercode'] = user.usercode
        token['is_staff'] = user.is_staff
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Refresh with rotation; refuses tokens whose user is gone or deactivated"""
    def validate(self, attrs):
        try:
            refresh = RefreshToken(attrs['refresh'])
        except TokenError:
            raise InvalidToken('Token is invalid or expired.')

        user_id = refresh.payload.get(api_settings.USER_ID_CLAIM)
        user = User.objects.filter(**{api_settings.USER_ID_FIELD: user_id}).first()
        if user is None:
            raise InvalidToken('Token is invalid. User no longer exists.')
        if not user.is_active:
            raise InvalidToken('User account is disabled.')

        try:
            return super().validate(attrs)
        except TokenError:
            raise InvalidToken('Token is invalid or expired.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Blacklist the supplied refresh token"""
    token = request.data.get('refresh')
    if not token:
        return Response({'error': 'Refresh token is required', 'code': 'VALIDATION_ERROR'},
                        status=status.HTTP_400_BAD_REQUEST)
    try:
        RefreshToken(token).blacklist()
    except TokenError as e:
        logger.warning(f"Logout with invalid token by {request.user.username}: {str(e)}")
        return Response({'error': 'Token is invalid or expired', 'code': 'INVALID_TOKEN'},
                        status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request, 'LOGOUT', 'User', request.user.pk, object_name=request.user.username)
    logger.info(f"User {request.user.username} logged out")
    return Response({'message': 'Logged out successfully'})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user"""
    user_data = UserSerializer(request.user).data
    user_data['groups'] = list(request.user.groups.values_list('name', flat=True))
    user_data['is_admin'] = request.user.is_superuser or request.user.is_staff
    return Response(user_data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request):
    serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
    serializer.is_valid(raise_exception=True)
    request.user.set_password(serializer.validated_data['new_password'])
    request.user.save(update_fields=['password'])
    create_audit_log(request, 'UPDATE', 'User', request.user.pk, object_name=request.user.username,
                     changes={'password': 'changed'})
    logger.info(f"User {request.user.username} changed password")
    return Response({'message': 'Password updated successfully'})


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.select_related('department').order_by('username')
        department = request.query_params.get('department')
        if department:
            users = users.filter(department_id=department)
        users = apply_search(users, request, ['username', 'usercode', 'first_name', 'last_name', 'email', 'phone'])
        users = apply_active_filter(users, request)
        return paginate(request, users, UserSerializer)
    else:
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        create_audit_log(request, 'CREATE', 'User', user.pk, object_name=user.username,
                         new_values=snapshot(user, exclude=['groups', 'user_permissions']))
        logger.info(f"User '{user.username}' created by {request.user.username}")
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_detail(request, pk):
    """Retrieve, update or deactivate a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        serializer = UserSerializer(user)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        old_values = snapshot(user, exclude=['groups', 'user_permissions'])
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        serializer.save()
        create_audit_log(request, 'UPDATE', 'User', user.pk, object_name=user.username,
                         old_values=old_values, new_values=snapshot(user, exclude=['groups', 'user_permissions']))
        logger.info(f"User {pk} updated by {request.user.username}")
        return Response(serializer.data)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'error': 'You cannot deactivate your own account', 'code': 'SELF_DELETE'},
                            status=status.HTTP_400_BAD_REQUEST)
        user.is_active = False
        user.save(update_fields=['is_active', 'updated_at'])
        create_audit_log(request, 'DELETE', 'User', user.pk, object_name=user.username)
        logger.info(f"User {pk} deactivated by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)


# Department views
DEPARTMENT_UNIQUE = [('name', 'Department name', 'DUPLICATE_NAME')]


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def department_list_create(request):
    """List departments or create a new department"""
    if request.method == 'GET':
        departments = Department.objects.filter(is_deleted=False)
        departments = apply_search(departments, request, ['name', 'description'])
        departments = apply_active_filter(departments, request)
        return paginate(request, departments.order_by('name'), DepartmentSerializer)

    logger.info(f"User {request.user.username} creating department with data: {request.data}")
    return create_master(request, DepartmentSerializer, DEPARTMENT_UNIQUE)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def department_detail(request, pk):
    """Retrieve, update or delete a department"""
    department = get_live_or_404(Department, pk, 'Department')

    if request.method == 'GET':
        return Response(DepartmentSerializer(department).data)
    elif request.method in ('PUT', 'PATCH'):
        return update_master(request, department, DepartmentSerializer, DEPARTMENT_UNIQUE)
    else:  # DELETE
        return delete_master(request, department, blockers=[
            (department.users.filter(is_active=True), 'DEPARTMENT_HAS_USERS',
             'Cannot delete department with assigned users'),
        ])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def department_dropdown(request):
    return Response(cached_dropdown(Department))


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user')

    # Non-staff users only see their own entries
    if not request.user.is_staff:
        queryset = queryset.filter(user=request.user)

    queryset = AuditLogFilter(request.query_params, queryset=queryset).qs
    queryset = apply_search(queryset, request, ['object_name', 'object_id', 'endpoint'])
    return paginate(request, queryset.order_by('-created_at'), AuditLogSerializer, default_limit=50)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(AuditLog, pk=pk)

    if not request.user.is_staff and audit_log.user != request.user:
        return Response({'error': 'Permission denied', 'code': 'FORBIDDEN'}, status=status.HTTP_403_FORBIDDEN)

    serializer = AuditLogSerializer(audit_log)
    return Response(serializer.data)


# ErrorLog views (read-only, staff)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def error_log_list(request):
    queryset = ErrorLogFilter(request.query_params, queryset=ErrorLog.objects.select_related('user')).qs
    queryset = apply_search(queryset, request, ['message', 'endpoint', 'code'])
    return paginate(request, queryset.order_by('-created_at'), ErrorLogSerializer, default_limit=50)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def error_log_detail(request, pk):
    error_log = get_object_or_404(ErrorLog, pk=pk)
    return Response(ErrorLogSerializer(error_log).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def error_log_stats(request):
    """Error counts grouped by severity and by error type"""
    queryset = ErrorLogFilter(request.query_params, queryset=ErrorLog.objects.all()).qs
    by_severity = {row['severity']: row['count'] for row in queryset.values('severity').annotate(count=Count('id'))}
    by_type = {row['error_type']: row['count'] for row in queryset.values('error_type').annotate(count=Count('id'))}
    return Response({
        'total': queryset.count(),
        'bySeverity': by_severity,
        'byErrorType': by_type,
        'serverErrors': queryset.filter(Q(status_code__gte=500)).count(),
    })
