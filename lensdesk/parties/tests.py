"""
Test suite for customers, vendors and business categories
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from lensdesk.core.models import AuditLog
from lensdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lensdesk.parties.models import Customer


class CustomerAPITests(TestCase):
    """Test customer endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_customer(self):
        data = {
            'code': 'c001',
            'name': 'Vision Care',
            'email': 'orders@visioncare.test',
            'phone': '9876543210',
            'gstin': '27abcde1234f1z5',
            'credit_limit': '50000.00',
        }
        response = self.client.post('/api/v1/customers/', data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'C001')
        self.assertEqual(response.data['gstin'], '27ABCDE1234F1Z5')
        self.assertFalse(response.data['has_price_mapping'])

        customer = Customer.objects.get(code='C001')
        self.assertEqual(customer.created_by, self.user)
        log = AuditLog.objects.get(action='CREATE', model_name='Customer')
        self.assertEqual(log.object_id, str(customer.pk))

    def test_email_is_required(self):
        response = self.client.post('/api/v1/customers/', {'code': 'C1', 'name': 'No Mail'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data['details'])

    def test_invalid_phone(self):
        data = {'code': 'C1', 'name': 'Bad Phone', 'email': 'a@b.test', 'phone': '12ab'}
        response = self.client.post('/api/v1/customers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Phone number must be 10-15 digits')

    def test_duplicate_code(self):
        TestDataFactory.create_customer(code='C001')
        data = {'code': 'c001', 'name': 'Copy', 'email': 'copy@test.com'}
        response = self.client.post('/api/v1/customers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'DUPLICATE_CODE')

    def test_has_price_mapping_flag(self):
        customer = TestDataFactory.create_customer()
        TestDataFactory.create_price_mapping(customer=customer)
        response = self.client.get(f'/api/v1/customers/{customer.id}/')
        self.assertTrue(response.data['has_price_mapping'])

    def test_list_filters(self):
        TestDataFactory.create_customer(name='Pune Optics', city='Pune')
        TestDataFactory.create_customer(name='Mumbai Optics', city='Mumbai', sales_person=self.user)

        response = self.client.get('/api/v1/customers/?city=pune')
        self.assertEqual(response.data['count'], 1)

        response = self.client.get(f'/api/v1/customers/?sales_person={self.user.id}')
        self.assertEqual(response.data['results'][0]['name'], 'Mumbai Optics')

        response = self.client.get('/api/v1/customers/?search=optics')
        self.assertEqual(response.data['count'], 2)

    def test_pagination(self):
        for _ in range(12):
            TestDataFactory.create_customer()
        response = self.client.get('/api/v1/customers/?limit=5&page=3')
        self.assertEqual(response.data['count'], 12)
        self.assertEqual(response.data['total_pages'], 3)
        self.assertEqual(len(response.data['results']), 2)
        self.assertIsNone(response.data['next'])
        self.assertEqual(response.data['previous'], 2)

    def test_update_records_changes(self):
        customer = TestDataFactory.create_customer(name='Old Name')
        response = self.client.patch(f'/api/v1/customers/{customer.id}/', {'name': 'New Name'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        log = AuditLog.objects.get(action='UPDATE', model_name='Customer')
        self.assertEqual(log.changes['name'], {'old': 'Old Name', 'new': 'New Name'})

    def test_delete_customer_with_orders_is_blocked(self):
        customer = TestDataFactory.create_customer()
        TestDataFactory.create_sale_order(customer=customer)
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'CUSTOMER_HAS_ORDERS')

    def test_delete_customer(self):
        customer = TestDataFactory.create_customer()
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        customer.refresh_from_db()
        self.assertTrue(customer.is_deleted)

    def test_dropdown(self):
        TestDataFactory.create_customer(code='C2', name='Beta', shop_name='Beta Shop')
        TestDataFactory.create_customer(code='C1', name='Alpha')
        response = self.client.get('/api/v1/customers/dropdown/')
        self.assertEqual(response.data[0], {'id': response.data[0]['id'], 'name': 'Alpha', 'code': 'C1', 'shop_name': ''})
        self.assertEqual(response.data[1]['shop_name'], 'Beta Shop')


class VendorAPITests(TestCase):
    """Test vendor endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_vendor_without_email(self):
        response = self.client.post('/api/v1/vendors/', {'code': 'v1', 'name': 'Lens Lab', 'category': 'Lab'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'V1')

    def test_invalid_pincode(self):
        response = self.client.post('/api/v1/vendors/', {'code': 'V1', 'name': 'Lens Lab', 'pincode': '41A'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_category(self):
        TestDataFactory.create_vendor(category='Lab')
        TestDataFactory.create_vendor(category='Frames')
        response = self.client.get('/api/v1/vendors/?category=lab')
        self.assertEqual(response.data['count'], 1)

    def test_delete_vendor(self):
        vendor = TestDataFactory.create_vendor()
        response = self.client.delete(f'/api/v1/vendors/{vendor.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = self.client.get(f'/api/v1/vendors/{vendor.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class BusinessCategoryAPITests(TestCase):
    """Test business categories and their link to customers"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_category(self):
        response = self.client.post('/api/v1/business-categories/', {'name': 'Retail Optician'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_count'], 0)

    def test_duplicate_name(self):
        TestDataFactory.create_business_category(name='Hospital')
        response = self.client.post('/api/v1/business-categories/', {'name': 'HOSPITAL'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'DUPLICATE_NAME')

    def test_list_search(self):
        TestDataFactory.create_business_category(name='Chain Store')
        TestDataFactory.create_business_category(name='Hospital')
        response = self.client.get('/api/v1/business-categories/?search=chain')
        self.assertEqual(response.data['count'], 1)

    def test_customer_with_category(self):
        category = TestDataFactory.create_business_category(name='Retail Optician')
        data = {'code': 'C010', 'name': 'Clear Sight', 'email': 'clear@sight.test', 'business_category': category.id}
        response = self.client.post('/api/v1/customers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['business_category_name'], 'Retail Optician')

        response = self.client.get(f'/api/v1/business-categories/{category.id}/')
        self.assertEqual(response.data['customer_count'], 1)

    def test_customer_with_inactive_category(self):
        category = TestDataFactory.create_business_category(is_active=False)
        data = {'code': 'C011', 'name': 'Clear Sight', 'email': 'clear@sight.test', 'business_category': category.id}
        response = self.client.post('/api/v1/customers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('business_category', response.data['details'])

    def test_filter_customers_by_category(self):
        category = TestDataFactory.create_business_category()
        TestDataFactory.create_customer(name='In Category', business_category=category)
        TestDataFactory.create_customer(name='Elsewhere')
        response = self.client.get(f'/api/v1/customers/?business_category={category.id}')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'In Category')

    def test_delete_category_with_customers_is_blocked(self):
        category = TestDataFactory.create_business_category()
        TestDataFactory.create_customer(business_category=category)
        response = self.client.delete(f'/api/v1/business-categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'CATEGORY_HAS_CUSTOMERS')

    def test_delete_category(self):
        category = TestDataFactory.create_business_category()
        deleted_customer = TestDataFactory.create_customer(business_category=category)
        deleted_customer.soft_delete()
        response = self.client.delete(f'/api/v1/business-categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        category.refresh_from_db()
        self.assertTrue(category.is_deleted)

    def test_dropdown(self):
        TestDataFactory.create_business_category(name='Hospital')
        TestDataFactory.create_business_category(name='Chain Store')
        TestDataFactory.create_business_category(name='Closed', is_active=False)
        response = self.client.get('/api/v1/business-categories/dropdown/')
        self.assertEqual([row['name'] for row in response.data], ['Chain Store', 'Hospital'])
