"""
Test suite for the lens catalog
Tests: attribute masters, lens products, coating prices, brand stats, seeding
"""
from io import StringIO
from decimal import Decimal
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from lensdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lensdesk.lenses.models import LensBrand, LensCoating, LensProduct, LensPrice


class LensAttributeAPITests(TestCase):
    """Test the brand/category/coating style masters"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_brand(self):
        response = self.client.post('/api/v1/lens-brands/', {'name': ' Essilor ', 'description': 'France'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Essilor')
        self.assertEqual(response.data['product_count'], 0)

    def test_duplicate_name_is_case_insensitive(self):
        TestDataFactory.create_brand(name='Zeiss')
        response = self.client.post('/api/v1/lens-brands/', {'name': 'ZEISS'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'DUPLICATE_NAME')

    def test_name_of_deleted_brand_can_be_reused(self):
        brand = TestDataFactory.create_brand(name='Hoya')
        brand.soft_delete(self.user)
        response = self.client.post('/api/v1/lens-brands/', {'name': 'Hoya'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_delete_brand_with_products_is_blocked(self):
        brand = TestDataFactory.create_brand()
        TestDataFactory.create_product(brand=brand)
        response = self.client.delete(f'/api/v1/lens-brands/{brand.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'BRAND_HAS_PRODUCTS')

    def test_delete_coating_with_prices_is_blocked(self):
        price = TestDataFactory.create_price()
        response = self.client.delete(f'/api/v1/lens-coatings/{price.coating_id}/')
        self.assertEqual(response.data['code'], 'COATING_HAS_PRICES')

    def test_delete_fitting_used_by_order_is_blocked(self):
        fitting = TestDataFactory.create_fitting()
        TestDataFactory.create_sale_order(fitting=fitting)
        response = self.client.delete(f'/api/v1/lens-fittings/{fitting.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'FITTING_IN_USE')

    def test_delete_unused_category(self):
        category = TestDataFactory.create_category()
        response = self.client.delete(f'/api/v1/lens-categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        category.refresh_from_db()
        self.assertTrue(category.is_deleted)

    def test_coating_search_includes_short_name(self):
        TestDataFactory.create_coating(name='Anti-Reflective', short_name='ARC')
        TestDataFactory.create_coating(name='Hard Coat', short_name='HC')
        response = self.client.get('/api/v1/lens-coatings/?search=arc')
        self.assertEqual(response.data['count'], 1)

    def test_fitting_price_must_not_be_negative(self):
        response = self.client.post('/api/v1/lens-fittings/', {'name': 'Rimless', 'fitting_price': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_dropdown_lists_active_rows(self):
        TestDataFactory.create_dia(name='70mm')
        TestDataFactory.create_dia(name='65mm')
        TestDataFactory.create_dia(name='80mm', is_active=False)
        response = self.client.get('/api/v1/lens-dias/dropdown/')
        self.assertEqual([row['name'] for row in response.data], ['65mm', '70mm'])

    def test_brand_stats(self):
        brand = TestDataFactory.create_brand(name='Essilor')
        product = TestDataFactory.create_product(brand=brand)
        TestDataFactory.create_price(product=product)
        TestDataFactory.create_price(product=product)
        TestDataFactory.create_product(brand=brand, is_active=False)
        TestDataFactory.create_brand(name='Idle', is_active=False)

        response = self.client.get('/api/v1/lens-brands/stats/')
        self.assertEqual(response.data['total_brands'], 2)
        self.assertEqual(response.data['active_brands'], 1)
        essilor = response.data['brands'][0]
        self.assertEqual(essilor['product_count'], 2)
        self.assertEqual(essilor['active_product_count'], 1)
        self.assertEqual(essilor['price_count'], 2)


class LensProductAPITests(TestCase):
    """Test lens products and their coating prices"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.brand = TestDataFactory.create_brand(name='Essilor')
        self.coating = TestDataFactory.create_coating(name='Hard Coat')

    def test_create_product(self):
        data = {'brand': self.brand.id, 'product_code': 'ess-sv', 'lens_name': 'Essilor SV'}
        response = self.client.post('/api/v1/lens-products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product_code'], 'ESS-SV')
        self.assertEqual(response.data['brand_name'], 'Essilor')

    def test_duplicate_product_code(self):
        TestDataFactory.create_product(brand=self.brand, product_code='ESS-SV')
        data = {'brand': self.brand.id, 'product_code': 'ess-sv', 'lens_name': 'Other'}
        response = self.client.post('/api/v1/lens-products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_product_with_inactive_brand(self):
        brand = TestDataFactory.create_brand(is_active=False)
        data = {'brand': brand.id, 'product_code': 'X-1', 'lens_name': 'X'}
        response = self.client.post('/api/v1/lens-products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('brand', response.data['details'])

    def test_list_filters(self):
        TestDataFactory.create_product(brand=self.brand, lens_name='Varilux Comfort')
        TestDataFactory.create_product(lens_name='ClearView')
        response = self.client.get(f'/api/v1/lens-products/?brand={self.brand.id}')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/lens-products/?search=varilux')
        self.assertEqual(response.data['count'], 1)

    def test_detail_includes_prices(self):
        product = TestDataFactory.create_product(brand=self.brand)
        TestDataFactory.create_price(product, self.coating, '1500.00')
        response = self.client.get(f'/api/v1/lens-products/{product.id}/')
        self.assertEqual(len(response.data['prices']), 1)
        self.assertEqual(response.data['prices'][0]['coating_name'], 'Hard Coat')

    def test_add_price(self):
        product = TestDataFactory.create_product(brand=self.brand)
        response = self.client.post(f'/api/v1/lens-products/{product.id}/prices/',
                                    {'coating': self.coating.id, 'price': '1500.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(LensPrice.objects.get(lens=product).price, Decimal('1500.00'))

    def test_add_duplicate_price(self):
        product = TestDataFactory.create_product(brand=self.brand)
        TestDataFactory.create_price(product, self.coating)
        response = self.client.post(f'/api/v1/lens-products/{product.id}/prices/',
                                    {'coating': self.coating.id, 'price': '900.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'DUPLICATE_PRICE')

    def test_add_price_revives_deleted_record(self):
        product = TestDataFactory.create_product(brand=self.brand)
        old = TestDataFactory.create_price(product, self.coating, '1000.00')
        old.soft_delete(self.user)

        response = self.client.post(f'/api/v1/lens-products/{product.id}/prices/',
                                    {'coating': self.coating.id, 'price': '1200.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['id'], old.id)
        old.refresh_from_db()
        self.assertFalse(old.is_deleted)
        self.assertEqual(old.price, Decimal('1200.00'))

    def test_price_must_be_positive(self):
        product = TestDataFactory.create_product(brand=self.brand)
        response = self.client.post(f'/api/v1/lens-products/{product.id}/prices/',
                                    {'coating': self.coating.id, 'price': '0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_price(self):
        price = TestDataFactory.create_price(coating=self.coating)
        response = self.client.patch(f'/api/v1/lens-prices/{price.id}/', {'price': '2500.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        price.refresh_from_db()
        self.assertEqual(price.price, Decimal('2500.00'))

    def test_move_price_to_taken_coating(self):
        product = TestDataFactory.create_product(brand=self.brand)
        other = TestDataFactory.create_coating()
        TestDataFactory.create_price(product, self.coating)
        price = TestDataFactory.create_price(product, other)
        response = self.client.patch(f'/api/v1/lens-prices/{price.id}/', {'coating': self.coating.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_delete_product_deletes_prices(self):
        product = TestDataFactory.create_product(brand=self.brand)
        price = TestDataFactory.create_price(product, self.coating)
        response = self.client.delete(f'/api/v1/lens-products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        price.refresh_from_db()
        self.assertTrue(price.is_deleted)

    def test_delete_product_used_by_order(self):
        product = TestDataFactory.create_product(brand=self.brand)
        TestDataFactory.create_sale_order(lens=product)
        response = self.client.delete(f'/api/v1/lens-products/{product.id}/')
        self.assertEqual(response.data['code'], 'PRODUCT_IN_USE')

    def test_dropdown_by_brand(self):
        TestDataFactory.create_product(brand=self.brand, lens_name='A Lens')
        TestDataFactory.create_product(lens_name='B Lens')
        response = self.client.get(f'/api/v1/lens-products/dropdown/?brand={self.brand.id}')
        self.assertEqual([row['name'] for row in response.data], ['A Lens'])


class SeedLensCatalogCommandTests(TestCase):
    """Test the seed_lens_catalog management command"""

    def test_seed_is_repeatable(self):
        call_command('seed_lens_catalog', stdout=StringIO())
        call_command('seed_lens_catalog', stdout=StringIO())

        self.assertEqual(LensBrand.objects.count(), 3)
        self.assertEqual(LensProduct.objects.count(), 6)
        self.assertEqual(LensPrice.objects.count(), 14)
        price = LensPrice.objects.get(lens__product_code='ESS-SV-STD', coating__short_name='HC')
        self.assertEqual(price.price, Decimal('1500.00'))

    def test_clear(self):
        TestDataFactory.create_coating(name='Legacy Coat')
        call_command('seed_lens_catalog', '--clear', stdout=StringIO())
        self.assertFalse(LensCoating.objects.filter(name='Legacy Coat').exists())
