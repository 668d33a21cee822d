"""
Discount arithmetic and the brand -> product -> coating cascade.

The functions here operate on the hierarchy exactly as the
discount-hierarchy endpoint returns it::

    [{'id', 'name', 'lensProductMasters': [
        {'id', 'lens_name', 'product_code', 'lensPriceMasters': [
            {'id', 'price', 'coating': {'id', 'name'}, 'priceMappings': [{'discountRate', ...}]}
        ]}
    ]}]

and never mutate their inputs.
"""
import math
import re
from dataclasses import dataclass
from decimal import Decimal

MIN_DISCOUNT = 0
MAX_DISCOUNT = 100

LEADING_NUMBER = re.compile(r'^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?')

ORIGIN_BRAND = 'brand'
ORIGIN_PRODUCT = 'product'
ORIGIN_COATING = 'coating'


class DiscountError(Exception):
    """Base class for discount editing failures"""


class DiscountValidationError(DiscountError, ValueError):
    """A discount or save request was rejected before touching any state"""

    def __init__(self, message, bound=None):
        super().__init__(message)
        self.bound = bound


class MissingCustomerError(DiscountValidationError):
    pass


class UnknownScopeError(DiscountValidationError, LookupError):
    pass


class TransportError(DiscountError):
    """The store could not be reached or refused the request"""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class DiscountLoadError(DiscountError):
    pass


class DiscountSaveError(DiscountError):
    pass


@dataclass(frozen=True)
class PendingDiscount:
    """An unsaved (or pre-loaded) discount for one coating price record"""
    brand_id: int
    product_id: int
    coating_id: int
    price_id: int
    discount: float
    origin: str = ORIGIN_COATING
    persisted: bool = False

    def as_payload(self):
        return {
            'brandId': self.brand_id,
            'productId': self.product_id,
            'coatingId': self.coating_id,
            'priceId': self.price_id,
            'discount': self.discount,
        }


def parse_discount(value):
    """
    Operator input as a float. Text is read up to the end of its leading
    number, so ``"12.5%"`` gives 12.5; input with no leading number counts as 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        match = LEADING_NUMBER.match(str(value))
        if match is None:
            return 0.0
        number = float(match.group(0))
    if math.isnan(number):
        return 0.0
    return number


def validate_discount(percent):
    """Raise DiscountValidationError naming the violated bound"""
    if percent < MIN_DISCOUNT:
        raise DiscountValidationError(f"Discount cannot be less than {MIN_DISCOUNT}%", bound='min')
    if percent > MAX_DISCOUNT:
        raise DiscountValidationError(f"Discount cannot exceed {MAX_DISCOUNT}%", bound='max')
    return percent


def compute_discounted_price(base_price, percent):
    """``base_price - base_price * percent / 100``; a zero percent returns base_price unchanged"""
    if isinstance(base_price, Decimal) and not isinstance(percent, Decimal):
        percent = Decimal(str(percent))
    elif isinstance(percent, Decimal) and not isinstance(base_price, Decimal):
        base_price = Decimal(str(base_price))
    return base_price - base_price * percent / 100


def products_of(brand):
    return brand.get('lensProductMasters') or []


def prices_of(product):
    return product.get('lensPriceMasters') or []


def find_brand(brands, brand_id):
    for brand in brands:
        if brand['id'] == brand_id:
            return brand
    raise UnknownScopeError(f"Brand {brand_id} is not part of the loaded hierarchy")


def find_product(brand, product_id):
    for product in products_of(brand):
        if product['id'] == product_id:
            return product
    raise UnknownScopeError(f"Product {product_id} is not part of brand {brand['id']}")


def iter_scope(brands, brand_id, product_id=None):
    """Yield ``(brand, product, price_record)`` for every coating under the scope"""
    brand = find_brand(brands, brand_id)
    products = [find_product(brand, product_id)] if product_id is not None else products_of(brand)
    for product in products:
        for record in prices_of(product):
            yield brand, product, record


def apply_cascade(brands, percent, brand_id, product_id=None, pending=None):
    """
    Return a new pending mapping with ``percent`` written to every coating
    price record under the brand (or under one of its products).

    Entries already pending for those records are replaced, whatever their
    origin; entries outside the scope are carried over untouched.
    """
    validate_discount(percent)
    origin = ORIGIN_PRODUCT if product_id is not None else ORIGIN_BRAND
    result = dict(pending or {})
    for brand, product, record in iter_scope(brands, brand_id, product_id):
        result[record['id']] = PendingDiscount(
            brand_id=brand['id'],
            product_id=product['id'],
            coating_id=record['coating']['id'],
            price_id=record['id'],
            discount=percent,
            origin=origin,
        )
    return result


def existing_discounts(brands):
    """Pending entries for overrides already stored (discountRate > 0), marked persisted"""
    pending = {}
    for brand in brands:
        for product in products_of(brand):
            for record in prices_of(product):
                mappings = record.get('priceMappings') or []
                if not mappings:
                    continue
                rate = parse_discount(mappings[0].get('discountRate'))
                if rate > 0:
                    pending[record['id']] = PendingDiscount(
                        brand_id=brand['id'],
                        product_id=product['id'],
                        coating_id=record['coating']['id'],
                        price_id=record['id'],
                        discount=rate,
                        origin=ORIGIN_COATING,
                        persisted=True,
                    )
    return pending


def filter_brands(brands, query):
    """Brands whose name, or any product's lens_name, contains ``query`` (case-insensitive)"""
    query = (query or '').lower()
    if not query:
        return list(brands)
    return [
        brand for brand in brands
        if query in (brand.get('name') or '').lower()
        or any(query in (product.get('lens_name') or '').lower() for product in products_of(brand))
    ]


def flatten(pending):
    return [entry.as_payload() for entry in pending.values()]
