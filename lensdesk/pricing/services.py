"""
Server-side discount operations: the hierarchy read, batch apply, price
mapping bulk writes and cost calculation.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import Prefetch

from lensdesk.core.exceptions import NotFoundError, ConflictError
from lensdesk.core.utils import create_audit_log
from lensdesk.lenses.models import LensBrand, LensFitting, LensPrice, LensProduct
from lensdesk.parties.models import Customer
from .discounts import compute_discounted_price
from .models import PriceMapping
from .serializers import HierarchyBrandSerializer

logger = logging.getLogger('lensdesk.pricing')

CENTS = Decimal('0.01')


def quantize(value):
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def get_customer(customer_id):
    try:
        return Customer.objects.get(pk=customer_id, is_deleted=False)
    except (Customer.DoesNotExist, ValueError, TypeError):
        raise NotFoundError('Customer not found', code='CUSTOMER_NOT_FOUND')


def customer_summary(customer):
    return {'id': customer.id, 'code': customer.code, 'name': customer.name}


def discounted_price_for(lens_price, rate):
    return quantize(compute_discounted_price(lens_price.price, Decimal(str(rate))))


def build_discount_hierarchy(customer):
    """
    Active brands -> active products -> active coating price records, with
    the customer's overrides attached to each price record.
    """
    mappings = PriceMapping.objects.filter(customer=customer)
    prices = (
        LensPrice.objects
        .filter(is_active=True, is_deleted=False, coating__is_deleted=False)
        .select_related('coating')
        .order_by('coating__name')
        .prefetch_related(Prefetch('price_mappings', queryset=mappings, to_attr='customer_mappings'))
    )
    products = (
        LensProduct.objects
        .filter(is_active=True, is_deleted=False)
        .order_by('lens_name')
        .prefetch_related(Prefetch('prices', queryset=prices, to_attr='live_prices'))
    )
    brands = (
        LensBrand.objects
        .filter(is_active=True, is_deleted=False)
        .order_by('name')
        .prefetch_related(Prefetch('products', queryset=products, to_attr='live_products'))
    )
    return {
        'brands': HierarchyBrandSerializer(brands, many=True).data,
        'hasPriceMapping': mappings.exists(),
        'customer': customer_summary(customer),
    }


def apply_discounts(customer, discounts, user=None, request=None):
    """
    Upsert one override per coating price record for ``customer``.

    ``discounts`` is a list of validated ``{priceId, discount, ...}`` entries.
    A price id repeated in the batch keeps its last entry. Missing or
    inactive price records are skipped. The batch is written atomically.
    """
    latest = {}
    for entry in discounts:
        latest[entry['priceId']] = entry

    prices = LensPrice.objects.filter(pk__in=list(latest), is_active=True, is_deleted=False).in_bulk()
    details = []
    skipped = []

    with transaction.atomic():
        for price_id, entry in latest.items():
            lens_price = prices.get(price_id)
            if lens_price is None:
                skipped.append(price_id)
                continue
            rate = quantize(Decimal(str(entry['discount'])))
            discount_price = discounted_price_for(lens_price, rate)
            mapping, created = PriceMapping.objects.update_or_create(
                customer=customer,
                lens_price=lens_price,
                defaults={'discount_rate': rate, 'discount_price': discount_price, 'updated_by': user},
                create_defaults={'discount_rate': rate, 'discount_price': discount_price,
                                 'created_by': user, 'updated_by': user},
            )
            details.append({
                'priceId': price_id,
                'mappingId': mapping.id,
                'discountRate': rate,
                'discountPrice': discount_price,
                'created': created,
            })

    if skipped:
        logger.warning(f"Skipped inactive or missing price records for customer {customer.id}: {skipped}")
    logger.info(f"Applied {len(details)} discounts for customer {customer.id}")

    create_audit_log(request, 'APPLY_DISCOUNTS', 'PriceMapping', customer.id, user=user,
                     object_name=customer.name,
                     changes={'affected': len(details), 'skipped': skipped,
                              'discounts': {str(d['priceId']): d['discountRate'] for d in details}})
    return {
        'affected': len(details),
        'details': details,
        'skipped': skipped,
        'customer': customer_summary(customer),
    }


def _load_for_mappings(rows):
    """Fetch the customers and live price records referenced by bulk rows"""
    customers = Customer.objects.filter(pk__in={row['customer'] for row in rows}, is_deleted=False).in_bulk()
    prices = LensPrice.objects.filter(pk__in={row['lens_price'] for row in rows}, is_deleted=False).in_bulk()
    for row in rows:
        if row['customer'] not in customers:
            raise NotFoundError(f"Customer {row['customer']} not found", code='CUSTOMER_NOT_FOUND')
        if row['lens_price'] not in prices:
            raise NotFoundError(f"Lens price {row['lens_price']} not found", code='LENS_PRICE_NOT_FOUND')
    return customers, prices


def bulk_create_mappings(rows, user=None):
    """Create new overrides; any pair that already has one fails the whole batch"""
    customers, prices = _load_for_mappings(rows)
    seen = set()
    for row in rows:
        pair = (row['customer'], row['lens_price'])
        if pair in seen or PriceMapping.objects.filter(customer_id=pair[0], lens_price_id=pair[1]).exists():
            raise ConflictError(f"Price mapping already exists for customer {pair[0]} and lens price {pair[1]}",
                                code='DUPLICATE_MAPPING')
        seen.add(pair)

    with transaction.atomic():
        created = [
            PriceMapping.objects.create(
                customer=customers[row['customer']],
                lens_price=prices[row['lens_price']],
                discount_rate=row['discount_rate'],
                discount_price=discounted_price_for(prices[row['lens_price']], row['discount_rate']),
                created_by=user,
                updated_by=user,
            )
            for row in rows
        ]
    return created


def bulk_upsert_mappings(rows, user=None):
    """Create or overwrite overrides; returns ``(mappings, created_count, updated_count)``"""
    customers, prices = _load_for_mappings(rows)
    results = []
    created_count = 0
    with transaction.atomic():
        for row in rows:
            lens_price = prices[row['lens_price']]
            discount_price = discounted_price_for(lens_price, row['discount_rate'])
            mapping, created = PriceMapping.objects.update_or_create(
                customer=customers[row['customer']],
                lens_price=lens_price,
                defaults={'discount_rate': row['discount_rate'], 'discount_price': discount_price, 'updated_by': user},
                create_defaults={'discount_rate': row['discount_rate'], 'discount_price': discount_price,
                                 'created_by': user, 'updated_by': user},
            )
            created_count += int(created)
            results.append(mapping)
    return results, created_count, len(results) - created_count


def bulk_update_mappings(rows, user=None):
    """Change the rate of existing overrides, recomputing their discounted price"""
    mappings = PriceMapping.objects.select_related('lens_price').in_bulk([row['id'] for row in rows])
    missing = [row['id'] for row in rows if row['id'] not in mappings]
    if missing:
        raise NotFoundError(f"Price mappings not found: {missing}", code='MAPPING_NOT_FOUND')

    with transaction.atomic():
        for row in rows:
            mapping = mappings[row['id']]
            mapping.discount_rate = row['discount_rate']
            mapping.discount_price = discounted_price_for(mapping.lens_price, row['discount_rate'])
            mapping.updated_by = user
            mapping.save(update_fields=['discount_rate', 'discount_price', 'updated_by', 'updated_at'])
    return [mappings[row['id']] for row in rows]


def calculate_product_cost(customer, lens_price, fitting=None, quantity=1):
    """
    Cost of ``quantity`` lenses for a customer, using the customer's override
    price when one exists, plus the fitting charge per lens.
    """
    base_cost = lens_price.price * quantity
    fitting_cost = (fitting.fitting_price * quantity) if fitting is not None else Decimal('0.00')

    mapping = PriceMapping.objects.filter(customer=customer, lens_price=lens_price).first()
    if mapping is not None:
        unit_price = mapping.discount_price
        discount_rate = mapping.discount_rate
    else:
        unit_price = lens_price.price
        discount_rate = Decimal('0.00')

    lens_cost = unit_price * quantity
    return {
        'customer_id': customer.id,
        'lens_price_id': lens_price.id,
        'fitting_id': fitting.id if fitting is not None else None,
        'quantity': quantity,
        'base_price': quantize(lens_price.price),
        'base_cost': quantize(base_cost),
        'has_price_mapping': mapping is not None,
        'discount_rate': quantize(discount_rate),
        'discounted_unit_price': quantize(unit_price),
        'discount_amount': quantize(base_cost - lens_cost),
        'lens_cost': quantize(lens_cost),
        'fitting_cost': quantize(fitting_cost),
        'final_cost': quantize(lens_cost + fitting_cost),
    }


def get_fitting(fitting_id):
    if fitting_id is None:
        return None
    try:
        return LensFitting.objects.get(pk=fitting_id, is_deleted=False)
    except LensFitting.DoesNotExist:
        raise NotFoundError('Fitting not found', code='FITTING_NOT_FOUND')


def get_lens_price(lens_price_id):
    try:
        return LensPrice.objects.select_related('lens', 'coating').get(pk=lens_price_id, is_deleted=False)
    except LensPrice.DoesNotExist:
        raise NotFoundError('Lens price not found', code='LENS_PRICE_NOT_FOUND')
