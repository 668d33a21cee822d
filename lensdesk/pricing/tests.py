"""
Test suite for the pricing API: discount hierarchy, apply-discounts,
price mapping management and cost calculation
"""
from decimal import Decimal
from io import StringIO
from django.core.management import CommandError, call_command
from django.test import TestCase
from rest_framework import status
from lensdesk.core.models import AuditLog
from lensdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lensdesk.pricing.discounts import DiscountLoadError, TransportError
from lensdesk.pricing.editor import DiscountCascadeEditor
from lensdesk.pricing.models import PriceMapping
from lensdesk.pricing.transports import HttpDiscountTransport


class PricingTestMixin:

    def build_catalog(self):
        self.brand = TestDataFactory.create_brand(name='Essilor')
        self.product = TestDataFactory.create_product(brand=self.brand, lens_name='Essilor Single Vision',
                                                      product_code='ESS-SV')
        self.hard_coat = TestDataFactory.create_coating(name='Hard Coat')
        self.anti_reflective = TestDataFactory.create_coating(name='Anti-Reflective')
        self.hc_price = TestDataFactory.create_price(self.product, self.hard_coat, '1500.00')
        self.ar_price = TestDataFactory.create_price(self.product, self.anti_reflective, '2000.00')


class DiscountHierarchyAPITests(PricingTestMixin, TestCase):
    """Test GET /api/v1/lens-products/discount-hierarchy/<customer_id>/"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer(code='C001', name='Vision Care')
        self.build_catalog()

    def url(self, customer_id):
        return f'/api/v1/lens-products/discount-hierarchy/{customer_id}/'

    def test_hierarchy_shape(self):
        response = self.client.get(self.url(self.customer.id))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        data = response.json()
        self.assertFalse(data['hasPriceMapping'])
        self.assertEqual(data['customer'], {'id': self.customer.id, 'code': 'C001', 'name': 'Vision Care'})
        self.assertEqual(len(data['brands']), 1)

        brand = data['brands'][0]
        self.assertEqual(brand['name'], 'Essilor')
        product = brand['lensProductMasters'][0]
        self.assertEqual(product['lens_name'], 'Essilor Single Vision')
        # Prices ordered by coating name
        self.assertEqual([p['coating']['name'] for p in product['lensPriceMasters']],
                         ['Anti-Reflective', 'Hard Coat'])
        self.assertEqual(product['lensPriceMasters'][1]['price'], 1500.0)
        self.assertEqual(product['lensPriceMasters'][1]['priceMappings'], [])

    def test_only_customer_mappings_are_included(self):
        other = TestDataFactory.create_customer()
        TestDataFactory.create_price_mapping(self.customer, self.hc_price, 10)
        TestDataFactory.create_price_mapping(other, self.hc_price, 30)

        data = self.client.get(self.url(self.customer.id)).json()

        self.assertTrue(data['hasPriceMapping'])
        record = data['brands'][0]['lensProductMasters'][0]['lensPriceMasters'][1]
        self.assertEqual(len(record['priceMappings']), 1)
        self.assertEqual(record['priceMappings'][0]['discountRate'], 10.0)
        self.assertEqual(record['priceMappings'][0]['discountPrice'], 1350.0)

    def test_inactive_and_deleted_rows_are_excluded(self):
        TestDataFactory.create_brand(name='Retired', is_active=False)
        TestDataFactory.create_product(brand=self.brand, lens_name='Gone', is_deleted=True)
        self.ar_price.is_active = False
        self.ar_price.save()

        data = self.client.get(self.url(self.customer.id)).json()

        self.assertEqual([b['name'] for b in data['brands']], ['Essilor'])
        products = data['brands'][0]['lensProductMasters']
        self.assertEqual(len(products), 1)
        self.assertEqual([p['id'] for p in products[0]['lensPriceMasters']], [self.hc_price.id])

    def test_missing_customer(self):
        response = self.client.get(self.url(999999))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'CUSTOMER_NOT_FOUND')

    def test_deleted_customer(self):
        self.customer.soft_delete(self.user)
        response = self.client.get(self.url(self.customer.id))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get(self.url(self.customer.id))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ApplyDiscountsAPITests(PricingTestMixin, TestCase):
    """Test POST /api/v1/lens-products/apply-discounts/"""

    url = '/api/v1/lens-products/apply-discounts/'

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer()
        self.build_catalog()

    def entry(self, price, discount):
        return {
            'brandId': self.brand.id,
            'productId': self.product.id,
            'coatingId': price.coating_id,
            'priceId': price.id,
            'discount': discount,
        }

    def test_apply_creates_mappings(self):
        data = {'customerId': self.customer.id,
                'discounts': [self.entry(self.hc_price, 10), self.entry(self.ar_price, 12.5)]}
        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['affected'], 2)
        self.assertEqual(response.data['customer']['id'], self.customer.id)

        hc = PriceMapping.objects.get(customer=self.customer, lens_price=self.hc_price)
        self.assertEqual(hc.discount_rate, Decimal('10.00'))
        self.assertEqual(hc.discount_price, Decimal('1350.00'))
        ar = PriceMapping.objects.get(customer=self.customer, lens_price=self.ar_price)
        self.assertEqual(ar.discount_price, Decimal('1750.00'))

    def test_apply_overwrites_existing_mapping(self):
        TestDataFactory.create_price_mapping(self.customer, self.hc_price, 5)
        data = {'customerId': self.customer.id, 'discounts': [self.entry(self.hc_price, 20)]}
        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['details'][0]['created'])
        mappings = PriceMapping.objects.filter(customer=self.customer, lens_price=self.hc_price)
        self.assertEqual(mappings.count(), 1)
        self.assertEqual(mappings.get().discount_price, Decimal('1200.00'))

    def test_duplicate_price_in_batch_keeps_last(self):
        data = {'customerId': self.customer.id,
                'discounts': [self.entry(self.hc_price, 10), self.entry(self.hc_price, 30)]}
        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.data['affected'], 1)
        mapping = PriceMapping.objects.get(customer=self.customer, lens_price=self.hc_price)
        self.assertEqual(mapping.discount_rate, Decimal('30.00'))

    def test_inactive_price_is_skipped(self):
        self.ar_price.is_active = False
        self.ar_price.save()
        data = {'customerId': self.customer.id,
                'discounts': [self.entry(self.hc_price, 10), self.entry(self.ar_price, 10)]}
        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.data['affected'], 1)
        self.assertEqual(response.data['skipped'], [self.ar_price.id])
        self.assertFalse(PriceMapping.objects.filter(lens_price=self.ar_price).exists())

    def test_out_of_range_discount_rejected(self):
        for discount in (150, -1):
            data = {'customerId': self.customer.id, 'discounts': [self.entry(self.hc_price, discount)]}
            response = self.client.post(self.url, data, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['code'], 'VALIDATION_ERROR')
        self.assertFalse(PriceMapping.objects.exists())

    def test_empty_batch_rejected(self):
        response = self.client.post(self.url, {'customerId': self.customer.id, 'discounts': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_customer(self):
        data = {'customerId': 999999, 'discounts': [self.entry(self.hc_price, 10)]}
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_apply_is_audited(self):
        data = {'customerId': self.customer.id, 'discounts': [self.entry(self.hc_price, 10)]}
        self.client.post(self.url, data, format='json')

        log = AuditLog.objects.get(action='APPLY_DISCOUNTS')
        self.assertEqual(log.object_id, str(self.customer.id))
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.changes['affected'], 1)


class PriceMappingAPITests(PricingTestMixin, TestCase):
    """Test the price mapping management endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer(name='Alpha Optics')
        self.build_catalog()

    def test_list_filtered_by_customer(self):
        TestDataFactory.create_price_mapping(self.customer, self.hc_price, 10)
        TestDataFactory.create_price_mapping(TestDataFactory.create_customer(), self.hc_price, 20)

        response = self.client.get(f'/api/v1/price-mappings/?customer={self.customer.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['customer_name'], 'Alpha Optics')
        self.assertEqual(response.data['results'][0]['coating_name'], 'Hard Coat')

    def test_search(self):
        TestDataFactory.create_price_mapping(self.customer, self.hc_price, 10)
        response = self.client.get('/api/v1/price-mappings/?search=alpha')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/price-mappings/?search=zzz')
        self.assertEqual(response.data['count'], 0)

    def test_bulk_create(self):
        data = {'mappings': [
            {'customer': self.customer.id, 'lens_price': self.hc_price.id, 'discount_rate': '10'},
            {'customer': self.customer.id, 'lens_price': self.ar_price.id, 'discount_rate': '25'},
        ]}
        response = self.client.post('/api/v1/price-mappings/', data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['created'], 2)
        mapping = PriceMapping.objects.get(lens_price=self.ar_price)
        self.assertEqual(mapping.discount_price, Decimal('1500.00'))

    def test_bulk_create_duplicate(self):
        TestDataFactory.create_price_mapping(self.customer, self.hc_price, 10)
        data = {'mappings': [
            {'customer': self.customer.id, 'lens_price': self.ar_price.id, 'discount_rate': '10'},
            {'customer': self.customer.id, 'lens_price': self.hc_price.id, 'discount_rate': '15'},
        ]}
        response = self.client.post('/api/v1/price-mappings/', data, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'DUPLICATE_MAPPING')
        self.assertEqual(PriceMapping.objects.count(), 1)

    def test_bulk_create_unknown_price(self):
        data = {'mappings': [{'customer': self.customer.id, 'lens_price': 999999, 'discount_rate': '10'}]}
        response = self.client.post('/api/v1/price-mappings/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'LENS_PRICE_NOT_FOUND')

    def test_bulk_upsert(self):
        TestDataFactory.create_price_mapping(self.customer, self.hc_price, 10)
        data = {'mappings': [
            {'customer': self.customer.id, 'lens_price': self.hc_price.id, 'discount_rate': '20'},
            {'customer': self.customer.id, 'lens_price': self.ar_price.id, 'discount_rate': '5'},
        ]}
        response = self.client.post('/api/v1/price-mappings/bulk-upsert/', data, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['created'], 1)
        self.assertEqual(response.data['updated'], 1)
        self.assertEqual(PriceMapping.objects.get(lens_price=self.hc_price).discount_price, Decimal('1200.00'))

    def test_bulk_update(self):
        mapping = TestDataFactory.create_price_mapping(self.customer, self.hc_price, 10)
        data = {'mappings': [{'id': mapping.id, 'discount_rate': '50'}]}
        response = self.client.post('/api/v1/price-mappings/bulk-update/', data, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        mapping.refresh_from_db()
        self.assertEqual(mapping.discount_price, Decimal('750.00'))

    def test_bulk_update_missing(self):
        data = {'mappings': [{'id': 999999, 'discount_rate': '50'}]}
        response = self.client.post('/api/v1/price-mappings/bulk-update/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_bulk_update_rejects_out_of_range(self):
        mapping = TestDataFactory.create_price_mapping(self.customer, self.hc_price, 10)
        data = {'mappings': [{'id': mapping.id, 'discount_rate': '101'}]}
        response = self.client.post('/api/v1/price-mappings/bulk-update/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_bulk_delete(self):
        first = TestDataFactory.create_price_mapping(self.customer, self.hc_price, 10)
        TestDataFactory.create_price_mapping(self.customer, self.ar_price, 10)
        response = self.client.post('/api/v1/price-mappings/bulk-delete/', {'ids': [first.id]}, format='json')

        self.assertEqual(response.data['deleted'], 1)
        self.assertEqual(PriceMapping.objects.count(), 1)

    def test_customer_mappings(self):
        TestDataFactory.create_price_mapping(self.customer, self.hc_price, 10)
        TestDataFactory.create_price_mapping(self.customer, self.ar_price, 10)
        url = f'/api/v1/price-mappings/customer/{self.customer.id}/'

        response = self.client.get(url)
        self.assertEqual(response.data['count'], 2)

        response = self.client.delete(url)
        self.assertEqual(response.data['deleted'], 2)
        self.assertFalse(PriceMapping.objects.filter(customer=self.customer).exists())

    def test_detail_patch_recomputes_price(self):
        mapping = TestDataFactory.create_price_mapping(self.customer, self.hc_price, 10)
        response = self.client.patch(f'/api/v1/price-mappings/{mapping.id}/', {'discount_rate': '40'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        mapping.refresh_from_db()
        self.assertEqual(mapping.discount_price, Decimal('900.00'))
        self.assertEqual(mapping.updated_by, self.user)

    def test_detail_delete(self):
        mapping = TestDataFactory.create_price_mapping(self.customer, self.hc_price, 10)
        response = self.client.delete(f'/api/v1/price-mappings/{mapping.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(PriceMapping.objects.exists())

    def test_detail_not_found(self):
        response = self.client.get('/api/v1/price-mappings/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class CalculateCostAPITests(PricingTestMixin, TestCase):
    """Test POST /api/v1/price-mappings/calculate-cost/"""

    url = '/api/v1/price-mappings/calculate-cost/'

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer()
        self.build_catalog()
        self.fitting = TestDataFactory.create_fitting(fitting_price=Decimal('200.00'))

    def test_cost_without_mapping(self):
        data = {'customer_id': self.customer.id, 'lens_price_id': self.hc_price.id, 'quantity': 2}
        response = self.client.post(self.url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['has_price_mapping'])
        self.assertEqual(response.data['base_cost'], Decimal('3000.00'))
        self.assertEqual(response.data['discount_amount'], Decimal('0.00'))
        self.assertEqual(response.data['final_cost'], Decimal('3000.00'))

    def test_cost_with_mapping_and_fitting(self):
        TestDataFactory.create_price_mapping(self.customer, self.hc_price, 10)
        data = {'customer_id': self.customer.id, 'lens_price_id': self.hc_price.id,
                'fitting_id': self.fitting.id, 'quantity': 2}
        response = self.client.post(self.url, data, format='json')

        self.assertTrue(response.data['has_price_mapping'])
        self.assertEqual(response.data['discount_rate'], Decimal('10.00'))
        self.assertEqual(response.data['lens_cost'], Decimal('2700.00'))
        self.assertEqual(response.data['discount_amount'], Decimal('300.00'))
        self.assertEqual(response.data['fitting_cost'], Decimal('400.00'))
        self.assertEqual(response.data['final_cost'], Decimal('3100.00'))

    def test_invalid_quantity(self):
        data = {'customer_id': self.customer.id, 'lens_price_id': self.hc_price.id, 'quantity': 0}
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_fitting(self):
        data = {'customer_id': self.customer.id, 'lens_price_id': self.hc_price.id, 'fitting_id': 999999}
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'FITTING_NOT_FOUND')


class APIClientResponse:
    """The parts of a requests.Response the HTTP transport reads"""

    def __init__(self, response):
        self.status_code = response.status_code
        self.reason = response.reason_phrase
        self._response = response

    def json(self):
        return self._response.json()


class APIClientSession:
    """Routes requests.Session calls to DRF's test client"""

    def __init__(self, client):
        self.client = client
        self.headers = {}

    def request(self, method, url, timeout=None, json=None):
        extra = {}
        if 'Authorization' in self.headers:
            extra['HTTP_AUTHORIZATION'] = self.headers['Authorization']
        if json is not None:
            response = getattr(self.client, method)(url, json, format='json', **extra)
        else:
            response = getattr(self.client, method)(url, **extra)
        return APIClientResponse(response)


class HttpTransportEditorTests(PricingTestMixin, TestCase):
    """Test the editor over the HTTP transport against the real API"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='operator', password='testpass123')
        self.customer = TestDataFactory.create_customer()
        self.build_catalog()
        self.transport = HttpDiscountTransport(base_url='/api/v1', session=APIClientSession(AuthenticatedAPIClient()))

    def test_login_then_edit_and_save(self):
        self.transport.login('operator', 'testpass123')
        self.assertTrue(self.transport.session.headers['Authorization'].startswith('Bearer '))

        editor = DiscountCascadeEditor(self.transport)
        editor.load_hierarchy(self.customer.id)
        editor.set_brand_discount(self.brand.id, '10')
        result = editor.save()

        self.assertEqual(result['affected'], 2)
        self.assertEqual(PriceMapping.objects.get(lens_price=self.hc_price).discount_price, Decimal('1350.00'))
        self.assertEqual(editor.discount_for(self.ar_price.id), 10.0)

    def test_error_response_becomes_transport_error(self):
        self.transport.login('operator', 'testpass123')
        with self.assertRaises(TransportError) as ctx:
            self.transport.fetch_hierarchy(999999)
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(str(ctx.exception), 'Customer not found')

    def test_unauthenticated_request(self):
        with self.assertRaises(TransportError) as ctx:
            self.transport.fetch_hierarchy(self.customer.id)
        self.assertEqual(ctx.exception.status_code, 401)


class CannedResponse:

    def __init__(self, status_code, body, reason='OK'):
        self.status_code = status_code
        self.reason = reason
        self.body = body

    def json(self):
        if isinstance(self.body, Exception):
            raise self.body
        return self.body


class CannedSession:
    """Answers every request with the same response"""

    def __init__(self, response):
        self.response = response
        self.headers = {}

    def request(self, method, url, timeout=None, json=None):
        return self.response


class HttpTransportResponseTests(TestCase):
    """Malformed bodies surface as transport errors"""

    def transport_for(self, response):
        return HttpDiscountTransport(base_url='http://lensdesk.test/api/v1', session=CannedSession(response))

    def test_success_with_non_json_body(self):
        transport = self.transport_for(CannedResponse(200, ValueError('not json')))
        with self.assertRaises(TransportError) as ctx:
            transport.fetch_hierarchy(1)
        self.assertEqual(ctx.exception.status_code, 200)

    def test_success_with_non_object_body(self):
        transport = self.transport_for(CannedResponse(200, ['unexpected']))
        with self.assertRaises(TransportError):
            transport.apply_discounts(1, [])

    def test_error_with_non_object_body_uses_reason(self):
        transport = self.transport_for(CannedResponse(502, ['upstream'], reason='Bad Gateway'))
        with self.assertRaises(TransportError) as ctx:
            transport.fetch_hierarchy(1)
        self.assertEqual(str(ctx.exception), 'Bad Gateway')
        self.assertEqual(ctx.exception.status_code, 502)

    def test_editor_reports_load_failure(self):
        editor = DiscountCascadeEditor(self.transport_for(CannedResponse(200, ValueError('not json'))))
        with self.assertRaises(DiscountLoadError) as ctx:
            editor.load_hierarchy(1)
        self.assertEqual(str(ctx.exception), 'Failed to load discount data')
        self.assertIsNone(editor.customer_id)


class ApplyDiscountCommandTests(PricingTestMixin, TestCase):
    """Test the apply_discount management command"""

    def setUp(self):
        self.customer = TestDataFactory.create_customer(code='C001')
        self.build_catalog()

    def run_command(self, *args):
        out = StringIO()
        call_command('apply_discount', '--customer', 'c001', '--brand', 'essilor', *args, stdout=out)
        return out.getvalue()

    def test_brand_discount(self):
        output = self.run_command('--percent', '15')
        self.assertIn('2 price mappings written', output)
        mapping = PriceMapping.objects.get(customer=self.customer, lens_price=self.ar_price)
        self.assertEqual(mapping.discount_price, Decimal('1700.00'))

    def test_dry_run_saves_nothing(self):
        output = self.run_command('--percent', '15', '--dry-run')
        self.assertIn('Dry run complete', output)
        self.assertFalse(PriceMapping.objects.exists())

    def test_product_scope(self):
        other = TestDataFactory.create_product(brand=self.brand, product_code='ESS-PRG')
        TestDataFactory.create_price(other, self.hard_coat, '8000.00')
        self.run_command('--product', 'ess-sv', '--percent', '5')
        self.assertEqual(PriceMapping.objects.count(), 2)
        self.assertFalse(PriceMapping.objects.filter(lens_price__lens=other).exists())

    def test_percent_with_sign(self):
        output = self.run_command('--percent', '10%')
        self.assertIn('Discount: 10.0%', output)
        mapping = PriceMapping.objects.get(customer=self.customer, lens_price=self.hc_price)
        self.assertEqual(mapping.discount_rate, Decimal('10.00'))
        self.assertEqual(mapping.discount_price, Decimal('1350.00'))

    def test_invalid_percent(self):
        with self.assertRaises(CommandError):
            self.run_command('--percent', '150')
        self.assertFalse(PriceMapping.objects.exists())

    def test_unknown_customer(self):
        with self.assertRaises(CommandError):
            call_command('apply_discount', '--customer', 'NOPE', '--brand', 'Essilor', '--percent', '5',
                         stdout=StringIO())
