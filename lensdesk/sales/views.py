import logging
from decimal import Decimal
from django.db import transaction
from django.db.models import Count, Sum
from django.utils.dateparse import parse_date
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from lensdesk.core.crud import create_master, update_master
from lensdesk.core.exceptions import BusinessRuleError
from lensdesk.core.pagination import paginate, get_live_or_404
from lensdesk.core.utils import create_audit_log, snapshot
from .filters import SaleOrderFilter
from .models import SaleOrder
from .serializers import SaleOrderSerializer, SaleOrderStatusSerializer, SaleOrderDispatchSerializer

logger = logging.getLogger('lensdesk.sales')


def order_queryset():
    return SaleOrder.objects.filter(is_deleted=False).select_related(
        'customer', 'lens', 'coating', 'assigned_person'
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def sale_order_list_create(request):
    """List sale orders or create a new sale order"""
    if request.method == 'GET':
        queryset = SaleOrderFilter(request.query_params, queryset=order_queryset()).qs
        return paginate(request, queryset.order_by('-order_date', '-id'), SaleOrderSerializer)

    logger.info(f"User {request.user.username} creating sale order with data: {request.data}")
    return create_master(request, SaleOrderSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def sale_order_detail(request, pk):
    """Retrieve, update or delete a sale order"""
    order = get_live_or_404(SaleOrder, pk, 'Sale order')

    if request.method == 'GET':
        return Response(SaleOrderSerializer(order).data)
    elif request.method in ('PUT', 'PATCH'):
        return update_master(request, order, SaleOrderSerializer)
    else:  # DELETE
        if order.status == 'DELIVERED':
            logger.warning(f"Delete of delivered sale order {order.order_no} refused")
            raise BusinessRuleError('Cannot delete delivered sale order', code='ORDER_DELIVERED')
        old_values = snapshot(order)
        order.soft_delete(request.user)
        create_audit_log(request, 'DELETE', 'SaleOrder', order.pk, object_name=order.order_no,
                         old_values=old_values, status_code=status.HTTP_204_NO_CONTENT)
        logger.info(f"Sale order {order.order_no} deleted by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def sale_order_status(request, pk):
    """Move a sale order to another status"""
    order = get_live_or_404(SaleOrder, pk, 'Sale order')
    serializer = SaleOrderStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    old_status = order.status
    order.status = serializer.validated_data['status']
    order.updated_by = request.user
    order.save(update_fields=['status', 'updated_by', 'updated_at'])

    create_audit_log(request, 'STATUS_CHANGE', 'SaleOrder', order.pk, object_name=order.order_no,
                     changes={'status': {'old': old_status, 'new': order.status}})
    logger.info(f"Sale order {order.order_no} status {old_status} -> {order.status} by {request.user.username}")
    return Response(SaleOrderSerializer(order).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def sale_order_dispatch(request, pk):
    """Update the dispatch details of a sale order"""
    order = get_live_or_404(SaleOrder, pk, 'Sale order')
    old_values = snapshot(order)
    serializer = SaleOrderDispatchSerializer(order, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)

    with transaction.atomic():
        order = serializer.save(updated_by=request.user)

    create_audit_log(request, 'UPDATE', 'SaleOrder', order.pk, object_name=order.order_no,
                     old_values=old_values, new_values=snapshot(order))
    logger.info(f"Dispatch info of sale order {order.order_no} updated by {request.user.username}")
    return Response(SaleOrderSerializer(order).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sale_order_stats(request):
    """Order counts by status and dispatch status, and lens revenue"""
    queryset = SaleOrder.objects.filter(is_deleted=False)
    date_from = parse_date(request.query_params.get('date_from') or '')
    date_to = parse_date(request.query_params.get('date_to') or '')
    if date_from:
        queryset = queryset.filter(order_date__gte=date_from)
    if date_to:
        queryset = queryset.filter(order_date__lte=date_to)

    by_status = {
        row['status']: row['count']
        for row in queryset.values('status').annotate(count=Count('id')).order_by()
    }
    by_dispatch_status = {
        (row['dispatch_status'] or 'Pending'): row['count']
        for row in queryset.values('dispatch_status').annotate(count=Count('id')).order_by()
    }
    revenue = queryset.aggregate(total=Sum('lens_price'))['total'] or Decimal('0.00')

    return Response({
        'total': queryset.count(),
        'byStatus': by_status,
        'byDispatchStatus': by_dispatch_status,
        'totalRevenue': revenue,
    })
