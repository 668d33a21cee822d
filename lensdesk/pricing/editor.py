"""
Discount cascade editor.

Holds one operator's in-memory editing session for a customer: the loaded
brand -> product -> coating price hierarchy, the pending per-price-record
discounts and the cascade values displayed at brand and product level.
Nothing is written until ``save`` submits the pending map as one batch.
"""
import logging

from .discounts import (
    ORIGIN_COATING,
    DiscountLoadError,
    DiscountSaveError,
    MissingCustomerError,
    PendingDiscount,
    TransportError,
    UnknownScopeError,
    apply_cascade,
    compute_discounted_price,
    existing_discounts,
    filter_brands,
    find_brand,
    flatten,
    iter_scope,
    parse_discount,
    products_of,
    prices_of,
    validate_discount,
)

logger = logging.getLogger('lensdesk.pricing')

_CURRENT_CUSTOMER = object()


def log_notice(level, message):
    logger.info(f"[{level}] {message}")


class DiscountCascadeEditor:
    compute_discounted_price = staticmethod(compute_discounted_price)

    def __init__(self, transport, notify=None):
        self.transport = transport
        self.notify = notify or log_notice
        self.customer_id = None
        self.customer = None
        self.brands = []
        self.has_price_mapping = False
        self.pending = {}
        self.brand_display = {}
        self.product_display = {}
        self.has_unsaved_changes = False
        self.expanded_brands = set()
        self.expanded_products = set()
        self.search_query = ''

    # Loading
    def load_hierarchy(self, customer_id):
        """
        Fetch the hierarchy for ``customer_id`` and seed the pending map with
        the customer's stored overrides. Raises DiscountLoadError on failure,
        leaving the current session untouched.
        """
        try:
            data = self.transport.fetch_hierarchy(customer_id)
        except TransportError as e:
            logger.error(f"Error fetching discount data for customer {customer_id}: {str(e)}")
            raise DiscountLoadError('Failed to load discount data') from e

        self.customer_id = customer_id
        self.customer = data.get('customer')
        self.brands = data.get('brands') or []
        self.has_price_mapping = bool(data.get('hasPriceMapping'))
        self.pending = existing_discounts(self.brands) if self.has_price_mapping else {}
        self.brand_display = {}
        self.product_display = {}
        self.has_unsaved_changes = False
        logger.info(f"Loaded {len(self.brands)} brands for customer {customer_id}, "
                    f"{len(self.pending)} stored discounts")
        return data

    # Editing
    def set_brand_discount(self, brand_id, value):
        """Cascade ``value`` to every coating price record of the brand"""
        percent = parse_discount(value)
        self.pending = apply_cascade(self.brands, percent, brand_id, pending=self.pending)
        self.brand_display[brand_id] = percent
        for product in products_of(find_brand(self.brands, brand_id)):
            self.product_display[product['id']] = percent
        self.has_unsaved_changes = True
        return percent

    def set_product_discount(self, brand_id, product_id, value):
        """Cascade ``value`` to the coating price records of one product"""
        percent = parse_discount(value)
        self.pending = apply_cascade(self.brands, percent, brand_id, product_id, pending=self.pending)
        self.product_display[product_id] = percent
        self.has_unsaved_changes = True
        return percent

    def set_coating_discount(self, brand_id, product_id, coating_id, price_id, value):
        percent = validate_discount(parse_discount(value))
        record = next(
            (record for _, _, record in iter_scope(self.brands, brand_id, product_id) if record['id'] == price_id),
            None,
        )
        if record is None:
            raise UnknownScopeError(f"Price record {price_id} is not part of product {product_id}")
        if record['coating']['id'] != coating_id:
            raise UnknownScopeError(f"Price record {price_id} belongs to coating {record['coating']['id']}, "
                                    f"not {coating_id}")
        pending = dict(self.pending)
        pending[price_id] = PendingDiscount(
            brand_id=brand_id,
            product_id=product_id,
            coating_id=record['coating']['id'],
            price_id=price_id,
            discount=percent,
            origin=ORIGIN_COATING,
        )
        self.pending = pending
        self.has_unsaved_changes = True
        return percent

    def discount_for(self, price_id):
        """The pending discount of a price record, or None"""
        entry = self.pending.get(price_id)
        return entry.discount if entry is not None else None

    def discounted_price(self, record):
        """Display price of a coating price record under its pending discount"""
        discount = self.discount_for(record['id'])
        if discount is None:
            return record['price']
        return compute_discounted_price(record['price'], discount)

    # Persisting
    def save(self, customer_id=_CURRENT_CUSTOMER):
        """
        Submit every pending entry as one batch.

        Returns the server response, or None when there was nothing to save.
        On failure the pending map is kept and DiscountSaveError is raised.
        A failed reload after a successful write is reported through
        ``notify`` and does not fail the save.
        """
        if customer_id is _CURRENT_CUSTOMER:
            customer_id = self.customer_id

        if not self.pending:
            self.notify('info', 'No discount changes to save')
            return None
        if not customer_id:
            raise MissingCustomerError('Please select a customer first')

        try:
            result = self.transport.apply_discounts(customer_id, flatten(self.pending))
        except TransportError as e:
            logger.error(f"Error saving discounts for customer {customer_id}: {str(e)}")
            raise DiscountSaveError('Failed to save discounts') from e

        self.pending = {}
        self.brand_display = {}
        self.product_display = {}
        self.has_unsaved_changes = False
        self.notify('success', f"Discounts applied successfully to {result.get('affected', 0)} items")
        try:
            self.load_hierarchy(customer_id)
        except DiscountLoadError:
            self.customer_id = customer_id
            self.notify('error', 'Discounts were saved but the discount data could not be reloaded')
        return result

    def reset(self):
        """Discard pending edits and cascade display values"""
        self.pending = {}
        self.brand_display = {}
        self.product_display = {}
        self.has_unsaved_changes = False
        self.notify('info', 'All unsaved changes have been discarded')

    # View state
    def set_search(self, query):
        self.search_query = query or ''

    def visible_brands(self):
        return filter_brands(self.brands, self.search_query)

    def toggle_brand(self, brand_id):
        self.expanded_brands ^= {brand_id}

    def toggle_product(self, product_id):
        self.expanded_products ^= {product_id}

    def expand_all(self):
        self.expanded_brands = {brand['id'] for brand in self.brands}
        self.expanded_products = {
            product['id'] for brand in self.brands for product in products_of(brand)
        }

    def collapse_all(self):
        self.expanded_brands = set()
        self.expanded_products = set()

    @property
    def all_expanded(self):
        return bool(self.brands) and len(self.expanded_brands) == len(self.brands)

    def price_count(self):
        return sum(len(prices_of(product)) for brand in self.brands for product in products_of(brand))
