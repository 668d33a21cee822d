"""
Tests for the discount cascade: pure functions, the editor session over an
in-memory transport, and the editor over the in-process transport
"""
import copy
from decimal import Decimal

from django.test import SimpleTestCase, TestCase

from lensdesk.core.test_utils import TestDataFactory
from lensdesk.pricing.discounts import (
    ORIGIN_BRAND,
    ORIGIN_COATING,
    ORIGIN_PRODUCT,
    DiscountLoadError,
    DiscountSaveError,
    DiscountValidationError,
    MissingCustomerError,
    TransportError,
    UnknownScopeError,
    apply_cascade,
    compute_discounted_price,
    existing_discounts,
    filter_brands,
    flatten,
    parse_discount,
    validate_discount,
)
from lensdesk.pricing.editor import DiscountCascadeEditor
from lensdesk.pricing.models import PriceMapping
from lensdesk.pricing.transports import LocalDiscountTransport


def price_record(price_id, price, coating_id, coating_name, mappings=None):
    return {
        'id': price_id,
        'price': price,
        'coating': {'id': coating_id, 'name': coating_name},
        'priceMappings': mappings or [],
    }


def sample_brands():
    """Essilor with two products (six coating prices) and Zeiss with one"""
    return [
        {
            'id': 1,
            'name': 'Essilor',
            'lensProductMasters': [
                {
                    'id': 10,
                    'lens_name': 'Essilor Single Vision Standard',
                    'product_code': 'ESS-SV-STD',
                    'lensPriceMasters': [
                        price_record(100, 1500.0, 1, 'Hard Coat'),
                        price_record(101, 2000.0, 2, 'Anti-Reflective'),
                        price_record(102, 5000.0, 3, 'Blue Light Protection'),
                        price_record(103, 6500.0, 4, 'Premium Multi-Coat'),
                    ],
                },
                {
                    'id': 11,
                    'lens_name': 'Essilor Varilux Comfort',
                    'product_code': 'ESS-PRG-VAR',
                    'lensPriceMasters': [
                        price_record(104, 8500.0, 2, 'Anti-Reflective'),
                        price_record(105, 9800.0, 3, 'Blue Light Protection'),
                    ],
                },
            ],
        },
        {
            'id': 2,
            'name': 'Zeiss',
            'lensProductMasters': [
                {
                    'id': 20,
                    'lens_name': 'Zeiss ClearView Single Vision',
                    'product_code': 'ZIS-SV-CLR',
                    'lensPriceMasters': [
                        price_record(200, 1800.0, 1, 'Hard Coat'),
                    ],
                },
            ],
        },
    ]


class FakeTransport:
    """In-memory transport recording every call"""

    def __init__(self, brands=None, has_price_mapping=False, fail_fetch=False, fail_apply=False):
        self.brands = brands if brands is not None else sample_brands()
        self.has_price_mapping = has_price_mapping
        self.fail_fetch = fail_fetch
        self.fail_apply = fail_apply
        self.fetch_calls = []
        self.apply_calls = []

    def fetch_hierarchy(self, customer_id):
        self.fetch_calls.append(customer_id)
        if self.fail_fetch:
            raise TransportError('connection refused')
        return {
            'brands': copy.deepcopy(self.brands),
            'hasPriceMapping': self.has_price_mapping,
            'customer': {'id': customer_id, 'code': 'C001', 'name': 'Vision Care'},
        }

    def apply_discounts(self, customer_id, discounts):
        self.apply_calls.append((customer_id, discounts))
        if self.fail_apply:
            raise TransportError('Internal server error', status_code=500)
        return {'affected': len(discounts), 'details': [], 'skipped': [], 'customer': {'id': customer_id}}

    @property
    def call_count(self):
        return len(self.fetch_calls) + len(self.apply_calls)


class DiscountArithmeticTests(SimpleTestCase):
    """Test discount parsing, validation and price arithmetic"""

    def test_discounted_price(self):
        self.assertEqual(compute_discounted_price(1500, 10), 1350)
        self.assertEqual(compute_discounted_price(2000, 10), 1800)
        self.assertEqual(compute_discounted_price(5000, 10), 4500)
        self.assertEqual(compute_discounted_price(6500, 10), 5850)

    def test_zero_percent_returns_base_price(self):
        self.assertEqual(compute_discounted_price(1234.56, 0), 1234.56)
        self.assertEqual(compute_discounted_price(Decimal('1234.56'), 0), Decimal('1234.56'))

    def test_hundred_percent_is_free(self):
        self.assertEqual(compute_discounted_price(Decimal('999.99'), 100), Decimal('0'))

    def test_decimal_price_with_float_percent(self):
        self.assertEqual(compute_discounted_price(Decimal('1500.00'), 12.5), Decimal('1312.5'))

    def test_parse_discount(self):
        self.assertEqual(parse_discount('12.5'), 12.5)
        self.assertEqual(parse_discount(20), 20.0)
        self.assertEqual(parse_discount('abc'), 0.0)
        self.assertEqual(parse_discount(''), 0.0)
        self.assertEqual(parse_discount(None), 0.0)
        self.assertEqual(parse_discount('nan'), 0.0)
        self.assertEqual(parse_discount(True), 0.0)

    def test_parse_discount_reads_leading_number(self):
        self.assertEqual(parse_discount('12.5%'), 12.5)
        self.assertEqual(parse_discount('10abc'), 10.0)
        self.assertEqual(parse_discount(' 7.5 percent'), 7.5)
        self.assertEqual(parse_discount('.5'), 0.5)
        self.assertEqual(parse_discount('-3'), -3.0)
        self.assertEqual(parse_discount('abc10'), 0.0)
        self.assertEqual(parse_discount(Decimal('12.50')), 12.5)

    def test_validate_discount_bounds(self):
        self.assertEqual(validate_discount(0), 0)
        self.assertEqual(validate_discount(100), 100)

        with self.assertRaises(DiscountValidationError) as ctx:
            validate_discount(-0.5)
        self.assertEqual(ctx.exception.bound, 'min')
        self.assertIn('less than 0%', str(ctx.exception))

        with self.assertRaises(DiscountValidationError) as ctx:
            validate_discount(100.01)
        self.assertEqual(ctx.exception.bound, 'max')
        self.assertIn('exceed 100%', str(ctx.exception))


class ApplyCascadeTests(SimpleTestCase):
    """Test the pure brand/product cascade"""

    def setUp(self):
        self.brands = sample_brands()

    def test_brand_cascade_covers_every_coating_price(self):
        pending = apply_cascade(self.brands, 10, brand_id=1)
        self.assertEqual(sorted(pending), [100, 101, 102, 103, 104, 105])
        for entry in pending.values():
            self.assertEqual(entry.discount, 10)
            self.assertEqual(entry.brand_id, 1)
            self.assertEqual(entry.origin, ORIGIN_BRAND)
            self.assertFalse(entry.persisted)

    def test_brand_cascade_leaves_other_brands_alone(self):
        pending = apply_cascade(self.brands, 5, brand_id=2)
        pending = apply_cascade(self.brands, 10, brand_id=1, pending=pending)
        self.assertEqual(pending[200].discount, 5)
        self.assertEqual(pending[100].discount, 10)

    def test_product_cascade_after_brand_overwrites_only_that_product(self):
        pending = apply_cascade(self.brands, 10, brand_id=1)
        pending = apply_cascade(self.brands, 25, brand_id=1, product_id=11, pending=pending)

        self.assertEqual(pending[104].discount, 25)
        self.assertEqual(pending[105].discount, 25)
        self.assertEqual(pending[104].origin, ORIGIN_PRODUCT)
        for price_id in (100, 101, 102, 103):
            self.assertEqual(pending[price_id].discount, 10)
            self.assertEqual(pending[price_id].origin, ORIGIN_BRAND)

    def test_cascade_overwrites_finer_grained_values(self):
        pending = apply_cascade(self.brands, 30, brand_id=1, product_id=10)
        pending = apply_cascade(self.brands, 10, brand_id=1, pending=pending)
        self.assertTrue(all(entry.discount == 10 for entry in pending.values()))

    def test_input_pending_is_not_mutated(self):
        original = apply_cascade(self.brands, 10, brand_id=1)
        snapshot = dict(original)
        apply_cascade(self.brands, 40, brand_id=1, pending=original)
        self.assertEqual(original, snapshot)

    def test_out_of_range_is_rejected(self):
        for percent in (-1, 100.5, 150):
            with self.assertRaises(DiscountValidationError):
                apply_cascade(self.brands, percent, brand_id=1)

    def test_unknown_brand_or_product(self):
        with self.assertRaises(UnknownScopeError):
            apply_cascade(self.brands, 10, brand_id=999)
        with self.assertRaises(UnknownScopeError):
            apply_cascade(self.brands, 10, brand_id=1, product_id=20)

    def test_flatten_uses_wire_keys(self):
        pending = apply_cascade(self.brands, 10, brand_id=2)
        self.assertEqual(flatten(pending), [
            {'brandId': 2, 'productId': 20, 'coatingId': 1, 'priceId': 200, 'discount': 10},
        ])


class ExistingDiscountsTests(SimpleTestCase):

    def test_only_positive_rates_are_loaded(self):
        brands = sample_brands()
        records = brands[0]['lensProductMasters'][0]['lensPriceMasters']
        records[0]['priceMappings'] = [{'id': 1, 'discountRate': 15, 'discountPrice': 1275}]
        records[1]['priceMappings'] = [{'id': 2, 'discountRate': 0, 'discountPrice': 2000}]

        pending = existing_discounts(brands)

        self.assertEqual(list(pending), [100])
        self.assertEqual(pending[100].discount, 15)
        self.assertEqual(pending[100].origin, ORIGIN_COATING)
        self.assertTrue(pending[100].persisted)


class FilterBrandsTests(SimpleTestCase):

    def test_matches_brand_name_or_product_name(self):
        brands = sample_brands()
        self.assertEqual([b['name'] for b in filter_brands(brands, 'zei')], ['Zeiss'])
        self.assertEqual([b['name'] for b in filter_brands(brands, 'VARILUX')], ['Essilor'])
        self.assertEqual([b['name'] for b in filter_brands(brands, 'single vision')], ['Essilor', 'Zeiss'])
        self.assertEqual(filter_brands(brands, 'nothing-like-this'), [])
        self.assertEqual(len(filter_brands(brands, '')), 2)
        # the query is matched as typed
        self.assertEqual(filter_brands(brands, ' zeiss '), [])


class DiscountCascadeEditorTests(SimpleTestCase):
    """Test the editor session against an in-memory transport"""

    def setUp(self):
        self.transport = FakeTransport()
        self.notices = []
        self.editor = DiscountCascadeEditor(self.transport, notify=lambda level, msg: self.notices.append((level, msg)))
        self.editor.load_hierarchy(7)

    def test_load_hierarchy(self):
        self.assertEqual(self.transport.fetch_calls, [7])
        self.assertEqual(self.editor.customer_id, 7)
        self.assertEqual(len(self.editor.brands), 2)
        self.assertEqual(self.editor.pending, {})
        self.assertFalse(self.editor.has_unsaved_changes)
        self.assertEqual(self.editor.price_count(), 7)

    def test_load_preloads_stored_discounts_as_persisted(self):
        brands = sample_brands()
        brands[1]['lensProductMasters'][0]['lensPriceMasters'][0]['priceMappings'] = [
            {'id': 9, 'discountRate': 12.5, 'discountPrice': 1575},
        ]
        editor = DiscountCascadeEditor(FakeTransport(brands=brands, has_price_mapping=True))
        editor.load_hierarchy(7)

        self.assertEqual(editor.discount_for(200), 12.5)
        self.assertTrue(editor.pending[200].persisted)
        self.assertFalse(editor.has_unsaved_changes)

    def test_load_failure_keeps_session(self):
        self.editor.set_brand_discount(1, 10)
        self.transport.fail_fetch = True

        with self.assertRaises(DiscountLoadError):
            self.editor.load_hierarchy(8)

        self.assertEqual(self.editor.customer_id, 7)
        self.assertEqual(len(self.editor.pending), 6)
        self.assertTrue(self.editor.has_unsaved_changes)

    def test_brand_discount_cascades_and_updates_display(self):
        self.editor.set_brand_discount(1, '10')

        self.assertEqual(len(self.editor.pending), 6)
        self.assertEqual(self.editor.brand_display, {1: 10.0})
        self.assertEqual(self.editor.product_display, {10: 10.0, 11: 10.0})
        self.assertTrue(self.editor.has_unsaved_changes)

    def test_product_discount_updates_only_that_product(self):
        self.editor.set_brand_discount(1, 10)
        self.editor.set_product_discount(1, 11, 20)

        self.assertEqual(self.editor.product_display, {10: 10, 11: 20})
        self.assertEqual(self.editor.brand_display, {1: 10})
        self.assertEqual(self.editor.discount_for(104), 20)
        self.assertEqual(self.editor.discount_for(100), 10)

    def test_non_numeric_input_counts_as_zero(self):
        self.editor.set_brand_discount(2, 'abc')
        self.assertEqual(self.editor.discount_for(200), 0.0)

    def test_invalid_discount_does_not_change_state(self):
        self.editor.set_brand_discount(1, 10)
        before = dict(self.editor.pending)

        for call in (
            lambda: self.editor.set_brand_discount(1, 150),
            lambda: self.editor.set_product_discount(1, 10, -5),
            lambda: self.editor.set_coating_discount(1, 10, 1, 100, 150),
        ):
            with self.assertRaises(DiscountValidationError):
                call()

        self.assertEqual(self.editor.pending, before)
        self.assertEqual(self.editor.brand_display, {1: 10})

    def test_coating_discount_must_belong_to_product(self):
        with self.assertRaises(UnknownScopeError):
            self.editor.set_coating_discount(1, 10, 1, 200, 10)
        self.assertEqual(self.editor.pending, {})

    def test_coating_discount_must_match_price_record_coating(self):
        with self.assertRaises(UnknownScopeError):
            self.editor.set_coating_discount(1, 10, 3, 100, 10)
        self.assertEqual(self.editor.pending, {})

        self.editor.set_coating_discount(1, 10, 1, 100, 10)
        self.assertEqual(self.editor.pending[100].coating_id, 1)

    def test_percent_text_is_read_up_to_the_sign(self):
        self.editor.set_brand_discount(2, '12.5%')
        self.assertEqual(self.editor.discount_for(200), 12.5)

    def test_essilor_scenario(self):
        self.editor.set_brand_discount(1, 10)
        product = self.editor.brands[0]['lensProductMasters'][0]
        prices = [self.editor.discounted_price(record) for record in product['lensPriceMasters']]
        self.assertEqual(prices, [1350, 1800, 4500, 5850])

        self.editor.set_coating_discount(1, 10, 1, 100, 20)
        prices = [self.editor.discounted_price(record) for record in product['lensPriceMasters']]
        self.assertEqual(prices, [1200, 1800, 4500, 5850])
        self.assertEqual(self.editor.discount_for(101), 10)

        with self.assertRaises(DiscountValidationError):
            self.editor.set_coating_discount(1, 10, 1, 100, 150)
        self.assertEqual(self.editor.discount_for(100), 20)

        with self.assertRaises(MissingCustomerError) as ctx:
            self.editor.save(None)
        self.assertIn('select a customer', str(ctx.exception))
        self.assertEqual(self.transport.apply_calls, [])

    def test_discounted_price_without_pending_is_base_price(self):
        record = self.editor.brands[1]['lensProductMasters'][0]['lensPriceMasters'][0]
        self.assertEqual(self.editor.discounted_price(record), 1800.0)

    def test_save_with_nothing_pending(self):
        calls = self.transport.call_count

        self.assertIsNone(self.editor.save())

        self.assertEqual(self.transport.call_count, calls)
        self.assertEqual(self.notices, [('info', 'No discount changes to save')])

    def test_save_submits_one_batch_and_reloads(self):
        self.editor.set_brand_discount(1, 10)
        self.editor.set_coating_discount(1, 10, 1, 100, 20)

        result = self.editor.save()

        self.assertEqual(result['affected'], 6)
        self.assertEqual(len(self.transport.apply_calls), 1)
        customer_id, discounts = self.transport.apply_calls[0]
        self.assertEqual(customer_id, 7)
        self.assertEqual(len(discounts), 6)
        self.assertEqual(len({d['priceId'] for d in discounts}), 6)
        self.assertIn({'brandId': 1, 'productId': 10, 'coatingId': 1, 'priceId': 100, 'discount': 20}, discounts)

        self.assertEqual(self.transport.fetch_calls, [7, 7])
        self.assertEqual(self.editor.pending, {})
        self.assertEqual(self.editor.brand_display, {})
        self.assertEqual(self.editor.product_display, {})
        self.assertFalse(self.editor.has_unsaved_changes)
        self.assertIn(('success', 'Discounts applied successfully to 6 items'), self.notices)

    def test_save_succeeds_when_reload_fails(self):
        self.editor.set_brand_discount(2, 10)
        self.transport.fail_fetch = True

        result = self.editor.save()

        self.assertEqual(result['affected'], 1)
        self.assertEqual(len(self.transport.apply_calls), 1)
        self.assertEqual(self.editor.pending, {})
        self.assertFalse(self.editor.has_unsaved_changes)
        self.assertEqual(self.editor.customer_id, 7)
        self.assertIn(('success', 'Discounts applied successfully to 1 items'), self.notices)
        self.assertEqual(self.notices[-1][0], 'error')

    def test_save_to_explicit_customer(self):
        self.editor.set_brand_discount(2, 5)
        self.editor.save(9)
        self.assertEqual(self.transport.apply_calls[0][0], 9)
        self.assertEqual(self.editor.customer_id, 9)

    def test_save_failure_keeps_pending(self):
        self.transport.fail_apply = True
        self.editor.set_brand_discount(1, 10)

        with self.assertRaises(DiscountSaveError) as ctx:
            self.editor.save()

        self.assertEqual(str(ctx.exception), 'Failed to save discounts')
        self.assertEqual(len(self.editor.pending), 6)
        self.assertTrue(self.editor.has_unsaved_changes)
        self.assertEqual(self.transport.fetch_calls, [7])

    def test_reset_discards_without_network(self):
        self.editor.set_brand_discount(1, 10)
        calls = self.transport.call_count

        self.editor.reset()

        self.assertEqual(self.transport.call_count, calls)
        self.assertEqual(self.editor.pending, {})
        self.assertEqual(self.editor.brand_display, {})
        self.assertFalse(self.editor.has_unsaved_changes)

    def test_search_does_not_affect_pending(self):
        self.editor.set_brand_discount(1, 10)
        self.editor.set_search('zeiss')

        self.assertEqual([b['name'] for b in self.editor.visible_brands()], ['Zeiss'])
        self.assertEqual(len(self.editor.pending), 6)

        self.editor.set_search('')
        self.assertEqual(len(self.editor.visible_brands()), 2)

    def test_expand_and_collapse(self):
        self.assertFalse(self.editor.all_expanded)
        self.editor.expand_all()
        self.assertTrue(self.editor.all_expanded)
        self.assertEqual(self.editor.expanded_products, {10, 11, 20})

        self.editor.toggle_brand(1)
        self.assertEqual(self.editor.expanded_brands, {2})
        self.editor.toggle_brand(1)
        self.assertEqual(self.editor.expanded_brands, {1, 2})

        self.editor.collapse_all()
        self.assertEqual(self.editor.expanded_brands, set())
        self.assertEqual(self.editor.expanded_products, set())
        self.assertEqual(self.editor.pending, {})


class LocalTransportEditorTests(TestCase):
    """Test the editor end to end against the database"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.customer = TestDataFactory.create_customer()
        self.brand = TestDataFactory.create_brand(name='Essilor')
        self.product = TestDataFactory.create_product(brand=self.brand, lens_name='Essilor Single Vision')
        self.prices = [
            TestDataFactory.create_price(self.product, TestDataFactory.create_coating(name=name), price)
            for name, price in (('A Hard Coat', '1500'), ('B Anti-Reflective', '2000'),
                                ('C Blue Light', '5000'), ('D Multi-Coat', '6500'))
        ]
        self.editor = DiscountCascadeEditor(LocalDiscountTransport(user=self.user))

    def test_brand_cascade_is_persisted(self):
        self.editor.load_hierarchy(self.customer.id)
        self.editor.set_brand_discount(self.brand.id, 10)
        self.editor.set_coating_discount(self.brand.id, self.product.id, self.prices[0].coating_id,
                                         self.prices[0].id, 20)

        result = self.editor.save()

        self.assertEqual(result['affected'], 4)
        mappings = {m.lens_price_id: m for m in PriceMapping.objects.filter(customer=self.customer)}
        self.assertEqual(len(mappings), 4)
        self.assertEqual(mappings[self.prices[0].id].discount_price, Decimal('1200.00'))
        self.assertEqual(mappings[self.prices[1].id].discount_price, Decimal('1800.00'))
        self.assertEqual(mappings[self.prices[3].id].discount_price, Decimal('5850.00'))
        self.assertEqual(mappings[self.prices[0].id].created_by, self.user)

        # Reloaded session starts from the stored overrides
        self.assertTrue(self.editor.has_price_mapping)
        self.assertEqual(self.editor.discount_for(self.prices[0].id), 20)
        self.assertFalse(self.editor.has_unsaved_changes)

    def test_resave_overwrites_instead_of_accumulating(self):
        self.editor.load_hierarchy(self.customer.id)
        self.editor.set_brand_discount(self.brand.id, 10)
        self.editor.save()
        self.editor.set_brand_discount(self.brand.id, 15)
        self.editor.save()

        mappings = PriceMapping.objects.filter(customer=self.customer)
        self.assertEqual(mappings.count(), 4)
        self.assertTrue(all(m.discount_rate == Decimal('15.00') for m in mappings))

    def test_unknown_customer(self):
        with self.assertRaises(DiscountLoadError):
            self.editor.load_hierarchy(999999)
