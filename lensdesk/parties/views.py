import logging
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from lensdesk.core.cache_utils import cached_dropdown
from lensdesk.core.crud import create_master, update_master, delete_master
from lensdesk.core.pagination import paginate, apply_search, apply_active_filter, get_live_or_404
from .models import BusinessCategory, Customer, Vendor
from .serializers import BusinessCategorySerializer, CustomerSerializer, VendorSerializer

logger = logging.getLogger('lensdesk.parties')

PARTY_SEARCH_FIELDS = ['code', 'name', 'shop_name', 'phone', 'email', 'city']
CUSTOMER_UNIQUE = [('code', 'Customer code', 'DUPLICATE_CODE')]
VENDOR_UNIQUE = [('code', 'Vendor code', 'DUPLICATE_CODE')]
BUSINESS_CATEGORY_UNIQUE = [('name', 'Business category name', 'DUPLICATE_NAME')]


# Customer views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def customer_list_create(request):
    """List customers or create a new customer"""
    if request.method == 'GET':
        queryset = Customer.objects.filter(is_deleted=False).select_related('sales_person', 'business_category')
        city = request.query_params.get('city')
        if city:
            queryset = queryset.filter(city__iexact=city)
        sales_person = request.query_params.get('sales_person')
        if sales_person:
            queryset = queryset.filter(sales_person_id=sales_person)
        business_category = request.query_params.get('business_category')
        if business_category:
            queryset = queryset.filter(business_category_id=business_category)
        queryset = apply_search(queryset, request, PARTY_SEARCH_FIELDS)
        queryset = apply_active_filter(queryset, request)
        return paginate(request, queryset.order_by('name'), CustomerSerializer)

    logger.info(f"User {request.user.username} creating customer with data: {request.data}")
    return create_master(request, CustomerSerializer, CUSTOMER_UNIQUE)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    customer = get_live_or_404(Customer, pk, 'Customer')

    if request.method == 'GET':
        return Response(CustomerSerializer(customer).data)
    elif request.method in ('PUT', 'PATCH'):
        return update_master(request, customer, CustomerSerializer, CUSTOMER_UNIQUE)
    else:  # DELETE
        return delete_master(request, customer, blockers=[
            (customer.sale_orders.filter(is_deleted=False), 'CUSTOMER_HAS_ORDERS',
             'Cannot delete customer that has sale orders'),
        ])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_dropdown(request):
    return Response(cached_dropdown(Customer, extra_fields=['code', 'shop_name']))


# Vendor views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def vendor_list_create(request):
    """List vendors or create a new vendor"""
    if request.method == 'GET':
        queryset = Vendor.objects.filter(is_deleted=False)
        category = request.query_params.get('category')
        if category:
            queryset = queryset.filter(category__iexact=category)
        queryset = apply_search(queryset, request, PARTY_SEARCH_FIELDS + ['category'])
        queryset = apply_active_filter(queryset, request)
        return paginate(request, queryset.order_by('name'), VendorSerializer)

    logger.info(f"User {request.user.username} creating vendor with data: {request.data}")
    return create_master(request, VendorSerializer, VENDOR_UNIQUE)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def vendor_detail(request, pk):
    """Retrieve, update or delete a vendor"""
    vendor = get_live_or_404(Vendor, pk, 'Vendor')

    if request.method == 'GET':
        return Response(VendorSerializer(vendor).data)
    elif request.method in ('PUT', 'PATCH'):
        return update_master(request, vendor, VendorSerializer, VENDOR_UNIQUE)
    else:  # DELETE
        return delete_master(request, vendor)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def vendor_dropdown(request):
    return Response(cached_dropdown(Vendor, extra_fields=['code']))


# Business category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def business_category_list_create(request):
    """List business categories or create a new one"""
    if request.method == 'GET':
        queryset = BusinessCategory.objects.filter(is_deleted=False)
        queryset = apply_search(queryset, request, ['name', 'description'])
        queryset = apply_active_filter(queryset, request)
        return paginate(request, queryset.order_by('name'), BusinessCategorySerializer)

    logger.info(f"User {request.user.username} creating business category with data: {request.data}")
    return create_master(request, BusinessCategorySerializer, BUSINESS_CATEGORY_UNIQUE)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def business_category_detail(request, pk):
    """Retrieve, update or delete a business category"""
    category = get_live_or_404(BusinessCategory, pk, 'Business category')

    if request.method == 'GET':
        return Response(BusinessCategorySerializer(category).data)
    elif request.method in ('PUT', 'PATCH'):
        return update_master(request, category, BusinessCategorySerializer, BUSINESS_CATEGORY_UNIQUE)
    else:  # DELETE
        return delete_master(request, category, blockers=[
            (category.customers.filter(is_deleted=False), 'CATEGORY_HAS_CUSTOMERS',
             'Cannot delete business category that has customers'),
        ])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def business_category_dropdown(request):
    return Response(cached_dropdown(BusinessCategory))
