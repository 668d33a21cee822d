import logging
from django.db import transaction
from django.db.models import Count, Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from lensdesk.core.cache_utils import cached_dropdown
from lensdesk.core.crud import create_master, update_master, delete_master
from lensdesk.core.exceptions import ConflictError
from lensdesk.core.pagination import paginate, apply_search, apply_active_filter, get_live_or_404
from lensdesk.core.utils import create_audit_log, snapshot
from .filters import LensProductFilter
from .models import (
    LensBrand, LensCategory, LensMaterial, LensType, LensCoating,
    LensTinting, LensFitting, LensDia, LensProduct, LensPrice
)
from .serializers import (
    LensBrandSerializer, LensCategorySerializer, LensMaterialSerializer, LensTypeSerializer,
    LensCoatingSerializer, LensTintingSerializer, LensFittingSerializer, LensDiaSerializer,
    LensProductSerializer, LensProductDetailSerializer, LensPriceSerializer
)

logger = logging.getLogger('lensdesk.lenses')


def name_unique(label):
    return [('name', label, 'DUPLICATE_NAME')]


def live_products(master):
    return master.products.filter(is_deleted=False)


def live_orders(master):
    return master.sale_orders.filter(is_deleted=False)


def make_attribute_views(model, serializer_class, label, blockers=None, extra_search=()):
    """
    Build the list/create, detail and dropdown views of a lens attribute master.

    ``blockers(instance)`` returns the ``(queryset, code, message)`` checks run
    before a delete.
    """
    unique_fields = name_unique(f"{label} name")
    search_fields = ['name', 'description'] + list(extra_search)

    @api_view(['GET', 'POST'])
    @permission_classes([IsAuthenticated])
    def list_create(request):
        if request.method == 'GET':
            queryset = model.objects.filter(is_deleted=False)
            queryset = apply_search(queryset, request, search_fields)
            queryset = apply_active_filter(queryset, request)
            return paginate(request, queryset.order_by('name'), serializer_class)
        logger.info(f"User {request.user.username} creating {label.lower()} with data: {request.data}")
        return create_master(request, serializer_class, unique_fields)

    @api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
    @permission_classes([IsAuthenticated])
    def detail(request, pk):
        instance = get_live_or_404(model, pk, label)
        if request.method == 'GET':
            return Response(serializer_class(instance).data)
        elif request.method in ('PUT', 'PATCH'):
            return update_master(request, instance, serializer_class, unique_fields)
        else:  # DELETE
            return delete_master(request, instance, blockers=blockers(instance) if blockers else ())

    @api_view(['GET'])
    @permission_classes([IsAuthenticated])
    def dropdown(request):
        return Response(cached_dropdown(model))

    list_create.__doc__ = f"List {label.lower()} records or create one"
    detail.__doc__ = f"Retrieve, update or delete a {label.lower()}"
    return list_create, detail, dropdown


lens_brand_list_create, lens_brand_detail, lens_brand_dropdown = make_attribute_views(
    LensBrand, LensBrandSerializer, 'Brand',
    blockers=lambda brand: [
        (live_products(brand), 'BRAND_HAS_PRODUCTS', 'Cannot delete brand that has lens products'),
    ],
)

lens_category_list_create, lens_category_detail, lens_category_dropdown = make_attribute_views(
    LensCategory, LensCategorySerializer, 'Category',
    blockers=lambda category: [
        (live_products(category), 'CATEGORY_HAS_PRODUCTS', 'Cannot delete category that has lens products'),
        (live_orders(category), 'CATEGORY_IN_USE', 'Cannot delete category used by sale orders'),
    ],
)

lens_material_list_create, lens_material_detail, lens_material_dropdown = make_attribute_views(
    LensMaterial, LensMaterialSerializer, 'Material',
    blockers=lambda material: [
        (live_products(material), 'MATERIAL_HAS_PRODUCTS', 'Cannot delete material that has lens products'),
        (live_orders(material), 'MATERIAL_IN_USE', 'Cannot delete material used by sale orders'),
    ],
)

lens_type_list_create, lens_type_detail, lens_type_dropdown = make_attribute_views(
    LensType, LensTypeSerializer, 'Type',
    blockers=lambda lens_type: [
        (live_products(lens_type), 'TYPE_HAS_PRODUCTS', 'Cannot delete type that has lens products'),
        (live_orders(lens_type), 'TYPE_IN_USE', 'Cannot delete type used by sale orders'),
    ],
)

lens_coating_list_create, lens_coating_detail, lens_coating_dropdown = make_attribute_views(
    LensCoating, LensCoatingSerializer, 'Coating',
    blockers=lambda coating: [
        (coating.prices.filter(is_deleted=False), 'COATING_HAS_PRICES', 'Cannot delete coating that has price records'),
        (live_orders(coating), 'COATING_IN_USE', 'Cannot delete coating used by sale orders'),
    ],
    extra_search=['short_name'],
)

lens_tinting_list_create, lens_tinting_detail, lens_tinting_dropdown = make_attribute_views(
    LensTinting, LensTintingSerializer, 'Tinting',
    blockers=lambda tinting: [
        (live_orders(tinting), 'TINTING_IN_USE', 'Cannot delete tinting used by sale orders'),
    ],
    extra_search=['short_name'],
)

lens_fitting_list_create, lens_fitting_detail, lens_fitting_dropdown = make_attribute_views(
    LensFitting, LensFittingSerializer, 'Fitting',
    blockers=lambda fitting: [
        (live_orders(fitting), 'FITTING_IN_USE', 'Cannot delete fitting used by sale orders'),
    ],
    extra_search=['short_name'],
)

lens_dia_list_create, lens_dia_detail, lens_dia_dropdown = make_attribute_views(
    LensDia, LensDiaSerializer, 'Dia',
    blockers=lambda dia: [
        (live_orders(dia), 'DIA_IN_USE', 'Cannot delete dia used by sale orders'),
    ],
    extra_search=['short_name'],
)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def lens_brand_stats(request):
    """Product and price counts per brand"""
    brands = LensBrand.objects.filter(is_deleted=False).annotate(
        product_count=Count('products', filter=Q(products__is_deleted=False), distinct=True),
        active_product_count=Count('products', filter=Q(products__is_deleted=False, products__is_active=True), distinct=True),
        price_count=Count('products__prices', filter=Q(products__is_deleted=False, products__prices__is_deleted=False), distinct=True),
    ).order_by('name')
    data = [
        {
            'id': brand.id,
            'name': brand.name,
            'is_active': brand.is_active,
            'product_count': brand.product_count,
            'active_product_count': brand.active_product_count,
            'price_count': brand.price_count,
        }
        for brand in brands
    ]
    return Response({
        'total_brands': len(data),
        'active_brands': sum(1 for row in data if row['is_active']),
        'brands': data,
    })


# Lens product views
PRODUCT_UNIQUE = [('product_code', 'Product code', 'DUPLICATE_CODE')]


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def lens_product_list_create(request):
    """List lens products or create a new lens product"""
    if request.method == 'GET':
        queryset = LensProduct.objects.filter(is_deleted=False).select_related(
            'brand', 'category', 'material', 'type'
        )
        queryset = LensProductFilter(request.query_params, queryset=queryset).qs
        return paginate(request, queryset.order_by('lens_name'), LensProductSerializer)

    logger.info(f"User {request.user.username} creating lens product with data: {request.data}")
    return create_master(request, LensProductSerializer, PRODUCT_UNIQUE)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def lens_product_detail(request, pk):
    """Retrieve (with prices), update or delete a lens product"""
    product = get_live_or_404(LensProduct, pk, 'Lens product')

    if request.method == 'GET':
        return Response(LensProductDetailSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        return update_master(request, product, LensProductSerializer, PRODUCT_UNIQUE)
    else:  # DELETE
        response = delete_master(request, product, blockers=[
            (live_orders(product), 'PRODUCT_IN_USE', 'Cannot delete lens product used by sale orders'),
        ])
        product.prices.filter(is_deleted=False).update(is_deleted=True, is_active=False)
        return response


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def lens_product_dropdown(request):
    queryset = LensProduct.objects.filter(is_active=True, is_deleted=False)
    brand_id = request.query_params.get('brand')
    if brand_id:
        queryset = queryset.filter(brand_id=brand_id)
        data = [
            {'id': row['id'], 'name': row['lens_name'], 'product_code': row['product_code'], 'brand_id': row['brand_id']}
            for row in queryset.order_by('lens_name').values('id', 'lens_name', 'product_code', 'brand_id')
        ]
        return Response(data)
    return Response(cached_dropdown(LensProduct, label_field='lens_name', extra_fields=['product_code', 'brand_id']))


# Lens price views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def lens_product_prices(request, pk):
    """List the coating prices of a product or add one"""
    product = get_live_or_404(LensProduct, pk, 'Lens product')

    if request.method == 'GET':
        prices = product.prices.filter(is_deleted=False).select_related('coating', 'lens').order_by('coating__name')
        return Response(LensPriceSerializer(prices, many=True).data)

    serializer = LensPriceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    coating = serializer.validated_data['coating']

    existing = LensPrice.objects.filter(lens=product, coating=coating).first()
    if existing is not None and not existing.is_deleted:
        raise ConflictError(f"A price for coating '{coating.name}' already exists on this product",
                            code='DUPLICATE_PRICE')

    with transaction.atomic():
        if existing is not None:
            # Revive the soft-deleted record for this (lens, coating) pair
            existing.price = serializer.validated_data['price']
            existing.is_active = serializer.validated_data.get('is_active', True)
            existing.is_deleted = False
            existing.updated_by = request.user
            existing.save()
            price = existing
        else:
            price = serializer.save(lens=product, created_by=request.user, updated_by=request.user)

    create_audit_log(request, 'CREATE', 'LensPrice', price.pk, object_name=str(price), new_values=snapshot(price),
                     status_code=status.HTTP_201_CREATED)
    logger.info(f"Price {price.pk} added to lens product {product.pk} by {request.user.username}")
    return Response(LensPriceSerializer(price).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def lens_price_detail(request, pk):
    """Retrieve, update or delete a coating price record"""
    price = get_live_or_404(LensPrice, pk, 'Lens price')

    if request.method == 'GET':
        return Response(LensPriceSerializer(price).data)
    elif request.method in ('PUT', 'PATCH'):
        coating = request.data.get('coating')
        if coating not in (None, '') and str(coating) != str(price.coating_id):
            if LensPrice.objects.filter(lens=price.lens, coating_id=coating).exclude(pk=price.pk).exists():
                raise ConflictError('A price for this coating already exists on this product', code='DUPLICATE_PRICE')
        return update_master(request, price, LensPriceSerializer)
    else:  # DELETE
        return delete_master(request, price)
