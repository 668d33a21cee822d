import logging
from django.db import transaction
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from lensdesk.core.exceptions import NotFoundError
from lensdesk.core.pagination import paginate
from lensdesk.core.utils import create_audit_log, snapshot
from . import services
from .filters import PriceMappingFilter
from .models import PriceMapping
from .serializers import (
    ApplyDiscountsSerializer, PriceMappingSerializer, BulkPriceMappingSerializer,
    BulkPriceMappingUpdateSerializer, BulkDeleteSerializer, CalculateCostSerializer
)

logger = logging.getLogger('lensdesk.pricing')


def mapping_queryset():
    return PriceMapping.objects.select_related(
        'customer', 'lens_price', 'lens_price__lens', 'lens_price__lens__brand', 'lens_price__coating'
    )


# Discount hierarchy
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def discount_hierarchy(request, customer_id):
    """Brand -> product -> coating price tree with the customer's overrides"""
    customer = services.get_customer(customer_id)
    logger.info(f"User {request.user.username} loading discount hierarchy for customer {customer.id}")
    return Response(services.build_discount_hierarchy(customer))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def apply_discounts(request):
    """Upsert a batch of coating-level discounts for one customer"""
    serializer = ApplyDiscountsSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"Invalid discount batch from {request.user.username}: {serializer.errors}")
        serializer.is_valid(raise_exception=True)

    customer = services.get_customer(serializer.validated_data['customerId'])
    logger.info(f"User {request.user.username} applying {len(serializer.validated_data['discounts'])} "
                f"discounts to customer {customer.id}")
    result = services.apply_discounts(customer, serializer.validated_data['discounts'],
                                      user=request.user, request=request)
    return Response(result)


# Price mappings
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def price_mapping_list_create(request):
    """List price mappings or create several at once"""
    if request.method == 'GET':
        queryset = PriceMappingFilter(request.query_params, queryset=mapping_queryset()).qs
        return paginate_mappings(request, queryset)

    serializer = BulkPriceMappingSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    created = services.bulk_create_mappings(serializer.validated_data['mappings'], user=request.user)

    create_audit_log(request, 'CREATE', 'PriceMapping', 'bulk', object_name=f"{len(created)} price mappings",
                     new_values={'ids': [mapping.id for mapping in created]}, status_code=status.HTTP_201_CREATED)
    logger.info(f"{len(created)} price mappings created by {request.user.username}")
    data = PriceMappingSerializer(mapping_queryset().filter(pk__in=[m.id for m in created]), many=True).data
    return Response({'created': len(created), 'results': data}, status=status.HTTP_201_CREATED)


def paginate_mappings(request, queryset):
    return paginate(request, queryset.order_by('customer__name', 'lens_price__lens__lens_name', 'lens_price__coating__name'),
                    PriceMappingSerializer)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def price_mapping_bulk_update(request):
    """Change the discount rate of existing price mappings"""
    serializer = BulkPriceMappingUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    updated = services.bulk_update_mappings(serializer.validated_data['mappings'], user=request.user)

    create_audit_log(request, 'UPDATE', 'PriceMapping', 'bulk', object_name=f"{len(updated)} price mappings",
                     new_values={str(m.id): m.discount_rate for m in updated})
    logger.info(f"{len(updated)} price mappings updated by {request.user.username}")
    return Response({'updated': len(updated), 'results': PriceMappingSerializer(updated, many=True).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def price_mapping_bulk_upsert(request):
    """Create price mappings or overwrite the existing ones for the same pair"""
    serializer = BulkPriceMappingSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    mappings, created, updated = services.bulk_upsert_mappings(serializer.validated_data['mappings'], user=request.user)

    create_audit_log(request, 'UPDATE', 'PriceMapping', 'bulk', object_name=f"{len(mappings)} price mappings",
                     changes={'created': created, 'updated': updated})
    logger.info(f"Price mapping upsert by {request.user.username}: {created} created, {updated} updated")
    return Response({
        'created': created,
        'updated': updated,
        'results': PriceMappingSerializer(mappings, many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def price_mapping_bulk_delete(request):
    serializer = BulkDeleteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    ids = serializer.validated_data['ids']

    with transaction.atomic():
        deleted, _ = PriceMapping.objects.filter(pk__in=ids).delete()

    create_audit_log(request, 'DELETE', 'PriceMapping', 'bulk', object_name=f"{deleted} price mappings",
                     old_values={'ids': ids})
    logger.info(f"{deleted} price mappings deleted by {request.user.username}")
    return Response({'deleted': deleted})


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def price_mapping_customer(request, customer_id):
    """All price mappings of one customer, or remove them all"""
    customer = services.get_customer(customer_id)
    queryset = mapping_queryset().filter(customer=customer)

    if request.method == 'GET':
        mappings = queryset.order_by('lens_price__lens__lens_name', 'lens_price__coating__name')
        return Response({
            'customer': services.customer_summary(customer),
            'count': mappings.count(),
            'results': PriceMappingSerializer(mappings, many=True).data,
        })

    with transaction.atomic():
        deleted, _ = queryset.delete()
    create_audit_log(request, 'DELETE', 'PriceMapping', customer.id, object_name=customer.name,
                     changes={'deleted': deleted})
    logger.info(f"{deleted} price mappings of customer {customer.id} deleted by {request.user.username}")
    return Response({'deleted': deleted, 'customer': services.customer_summary(customer)})


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def price_mapping_detail(request, pk):
    """Retrieve, change the rate of, or delete one price mapping"""
    try:
        mapping = mapping_queryset().get(pk=pk)
    except PriceMapping.DoesNotExist:
        raise NotFoundError('Price mapping not found')

    if request.method == 'GET':
        return Response(PriceMappingSerializer(mapping).data)
    elif request.method == 'PATCH':
        old_values = snapshot(mapping)
        serializer = PriceMappingSerializer(mapping, data={'discount_rate': request.data.get('discount_rate')},
                                            partial=True)
        serializer.is_valid(raise_exception=True)
        rate = serializer.validated_data['discount_rate']
        with transaction.atomic():
            mapping = serializer.save(
                discount_price=services.discounted_price_for(mapping.lens_price, rate),
                updated_by=request.user,
            )
        create_audit_log(request, 'UPDATE', 'PriceMapping', mapping.pk, object_name=str(mapping),
                         old_values=old_values, new_values=snapshot(mapping))
        return Response(PriceMappingSerializer(mapping).data)
    else:  # DELETE
        old_values = snapshot(mapping)
        mapping_id = mapping.pk
        mapping.delete()
        create_audit_log(request, 'DELETE', 'PriceMapping', mapping_id, old_values=old_values,
                         status_code=status.HTTP_204_NO_CONTENT)
        logger.info(f"Price mapping {mapping_id} deleted by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def calculate_cost(request):
    """Cost of a lens order line for a customer, using the customer's override price"""
    serializer = CalculateCostSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    customer = services.get_customer(data['customer_id'])
    lens_price = services.get_lens_price(data['lens_price_id'])
    fitting = services.get_fitting(data.get('fitting_id'))
    return Response(services.calculate_product_cost(customer, lens_price, fitting, data['quantity']))
