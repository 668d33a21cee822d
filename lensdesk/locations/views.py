import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from lensdesk.core.cache_utils import cached_dropdown
from lensdesk.core.crud import create_master, update_master, delete_master
from lensdesk.core.pagination import paginate, apply_search, apply_active_filter, get_live_or_404
from .models import Location, Tray
from .serializers import LocationSerializer, TraySerializer

logger = logging.getLogger('lensdesk.locations')

LOCATION_UNIQUE = [('location_code', 'Location code', 'DUPLICATE_CODE')]
TRAY_UNIQUE = [('tray_code', 'Tray code', 'DUPLICATE_CODE')]


def invalid_location_response(request):
    """400 INVALID_LOCATION when the payload points at a missing or deleted location"""
    location_id = request.data.get('location')
    if location_id in (None, ''):
        if request.method == 'PATCH':
            return None
        return Response({'error': 'Location is required', 'code': 'INVALID_LOCATION'},
                        status=status.HTTP_400_BAD_REQUEST)
    if not Location.objects.filter(pk=location_id, is_deleted=False, is_active=True).exists():
        logger.warning(f"User {request.user.username} referenced invalid location {location_id}")
        return Response({'error': 'Location does not exist or is inactive', 'code': 'INVALID_LOCATION'},
                        status=status.HTTP_400_BAD_REQUEST)
    return None


# Location views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def location_list_create(request):
    """List locations or create a new location"""
    if request.method == 'GET':
        queryset = Location.objects.filter(is_deleted=False).prefetch_related('trays')
        queryset = apply_search(queryset, request, ['name', 'location_code', 'description'])
        queryset = apply_active_filter(queryset, request)
        return paginate(request, queryset.order_by('name'), LocationSerializer)

    logger.info(f"User {request.user.username} creating location with data: {request.data}")
    return create_master(request, LocationSerializer, LOCATION_UNIQUE)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def location_detail(request, pk):
    """Retrieve, update or delete a location"""
    location = get_live_or_404(Location, pk, 'Location')

    if request.method == 'GET':
        return Response(LocationSerializer(location).data)
    elif request.method in ('PUT', 'PATCH'):
        return update_master(request, location, LocationSerializer, LOCATION_UNIQUE)
    else:  # DELETE
        return delete_master(request, location, blockers=[
            (location.trays.filter(is_deleted=False), 'LOCATION_HAS_TRAYS',
             'Cannot delete location that has trays assigned'),
        ])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def location_dropdown(request):
    return Response(cached_dropdown(Location, extra_fields=['location_code']))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def location_trays(request, pk):
    """Trays kept at one location"""
    location = get_live_or_404(Location, pk, 'Location')
    trays = location.trays.filter(is_deleted=False).order_by('name')
    return Response(TraySerializer(trays, many=True).data)


# Tray views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def tray_list_create(request):
    """List trays or create a new tray"""
    if request.method == 'GET':
        queryset = Tray.objects.filter(is_deleted=False).select_related('location')
        location_id = request.query_params.get('location')
        if location_id:
            queryset = queryset.filter(location_id=location_id)
        queryset = apply_search(queryset, request, ['name', 'tray_code', 'description', 'location__name'])
        queryset = apply_active_filter(queryset, request)
        return paginate(request, queryset.order_by('name'), TraySerializer)

    logger.info(f"User {request.user.username} creating tray with data: {request.data}")
    error_response = invalid_location_response(request)
    if error_response is not None:
        return error_response
    return create_master(request, TraySerializer, TRAY_UNIQUE)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def tray_detail(request, pk):
    """Retrieve, update or delete a tray"""
    tray = get_live_or_404(Tray, pk, 'Tray')

    if request.method == 'GET':
        return Response(TraySerializer(tray).data)
    elif request.method in ('PUT', 'PATCH'):
        error_response = invalid_location_response(request)
        if error_response is not None:
            return error_response
        return update_master(request, tray, TraySerializer, TRAY_UNIQUE)
    else:  # DELETE
        return delete_master(request, tray)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tray_dropdown(request):
    return Response(cached_dropdown(Tray, extra_fields=['tray_code', 'location_id']))
