"""
Test suite for sale orders
Tests: order numbering, totals, CRUD, status and dispatch updates, stats
"""
from datetime import timedelta
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from lensdesk.core.models import AuditLog
from lensdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lensdesk.sales.models import SaleOrder


class SaleOrderModelTests(TestCase):
    """Test SaleOrder numbering and totals"""

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.year = timezone.localdate().year

    def test_order_numbers_are_sequential(self):
        first = TestDataFactory.create_sale_order(customer=self.customer)
        second = TestDataFactory.create_sale_order(customer=self.customer)
        self.assertEqual(first.order_no, f'SO-{self.year}-001')
        self.assertEqual(second.order_no, f'SO-{self.year}-002')
        self.assertEqual(str(second), f'SO-{self.year}-002')

    def test_order_number_uses_numeric_maximum(self):
        TestDataFactory.create_sale_order(customer=self.customer, order_no=f'SO-{self.year}-999')
        TestDataFactory.create_sale_order(customer=self.customer, order_no=f'SO-{self.year}-1000')
        order = TestDataFactory.create_sale_order(customer=self.customer)
        self.assertEqual(order.order_no, f'SO-{self.year}-1001')

    def test_previous_year_does_not_affect_sequence(self):
        TestDataFactory.create_sale_order(customer=self.customer, order_no=f'SO-{self.year - 1}-050')
        order = TestDataFactory.create_sale_order(customer=self.customer)
        self.assertEqual(order.order_no, f'SO-{self.year}-001')

    def test_totals(self):
        order = TestDataFactory.create_sale_order(
            customer=self.customer,
            lens_price=Decimal('1500.00'),
            right_eye_extra=Decimal('100.00'),
            fitting_price=Decimal('200.00'),
            tinting_price=Decimal('250.00'),
            discount=Decimal('10.00'),
            additional_price=[{'name': 'Courier', 'value': 50}],
        )
        self.assertEqual(order.additional_total, Decimal('50'))
        self.assertEqual(order.subtotal, Decimal('2100.00'))
        self.assertEqual(order.total, Decimal('1890.00'))


class SaleOrderAPITests(TestCase):
    """Test sale order endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer(name='Bright Eyes Opticals')
        self.product = TestDataFactory.create_product()
        self.coating = TestDataFactory.create_coating()

    def order_data(self, **extra):
        data = {
            'customer': self.customer.id,
            'lens': self.product.id,
            'coating': self.coating.id,
            'right_eye': True,
            'right_spherical': '-1.25',
            'right_cylindrical': '-0.50',
            'right_axis': '180',
            'lens_price': '1500.00',
            'fitting_price': '200.00',
        }
        data.update(extra)
        return data

    def test_create_order(self):
        response = self.client.post('/api/v1/sale-orders/', self.order_data(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['order_no'].startswith('SO-'))
        self.assertEqual(response.data['status'], 'DRAFT')
        self.assertEqual(response.data['dispatch_status'], 'Pending')
        self.assertEqual(response.data['customer_name'], 'Bright Eyes Opticals')
        self.assertEqual(response.data['total'], '1700.00')

        order = SaleOrder.objects.get(pk=response.data['id'])
        self.assertEqual(order.created_by, self.user)
        self.assertTrue(AuditLog.objects.filter(action='CREATE', model_name='SaleOrder',
                                                object_id=str(order.pk)).exists())

    def test_order_no_cannot_be_supplied(self):
        response = self.client.post('/api/v1/sale-orders/', self.order_data(order_no='CUSTOM-1'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotEqual(response.data['order_no'], 'CUSTOM-1')

    def test_create_for_inactive_customer(self):
        self.customer.is_active = False
        self.customer.save()
        response = self.client.post('/api/v1/sale-orders/', self.order_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'VALIDATION_ERROR')

    def test_create_with_deleted_lens(self):
        self.product.soft_delete(self.user)
        response = self.client.post('/api/v1/sale-orders/', self.order_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('lens', response.data['details'])

    def test_discount_out_of_range(self):
        response = self.client.post('/api/v1/sale-orders/', self.order_data(discount='120'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_additional_price_validation(self):
        bad = self.order_data(additional_price=[{'name': '', 'value': 10}])
        response = self.client.post('/api/v1/sale-orders/', bad, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        negative = self.order_data(additional_price=[{'name': 'Courier', 'value': -5}])
        response = self.client.post('/api/v1/sale-orders/', negative, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        good = self.order_data(additional_price=[{'name': ' Courier ', 'value': '75'}])
        response = self.client.post('/api/v1/sale-orders/', good, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['additional_price'], [{'name': 'Courier', 'value': 75.0}])

    def test_list_filters(self):
        TestDataFactory.create_sale_order(customer=self.customer, urgent_order=True)
        TestDataFactory.create_sale_order(customer=self.customer, status='CONFIRMED')
        TestDataFactory.create_sale_order(customer=TestDataFactory.create_customer())

        response = self.client.get(f'/api/v1/sale-orders/?customer={self.customer.id}')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/sale-orders/?status=CONFIRMED')
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/sale-orders/?urgent=true')
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/sale-orders/?search=bright')
        self.assertEqual(response.data['count'], 2)

    def test_deleted_orders_are_hidden(self):
        order = TestDataFactory.create_sale_order(customer=self.customer)
        order.soft_delete(self.user)
        response = self.client.get('/api/v1/sale-orders/')
        self.assertEqual(response.data['count'], 0)
        response = self.client.get(f'/api/v1/sale-orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_order(self):
        order = TestDataFactory.create_sale_order(customer=self.customer, user=self.user)
        response = self.client.patch(f'/api/v1/sale-orders/{order.id}/', {'remark': 'Rush'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.remark, 'Rush')

    def test_change_status(self):
        order = TestDataFactory.create_sale_order(customer=self.customer)
        response = self.client.patch(f'/api/v1/sale-orders/{order.id}/status/', {'status': 'CONFIRMED'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'CONFIRMED')
        log = AuditLog.objects.get(action='STATUS_CHANGE')
        self.assertEqual(log.changes, {'status': {'old': 'DRAFT', 'new': 'CONFIRMED'}})

    def test_invalid_status(self):
        order = TestDataFactory.create_sale_order(customer=self.customer)
        response = self.client.patch(f'/api/v1/sale-orders/{order.id}/status/', {'status': 'LOST'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_dispatch(self):
        order = TestDataFactory.create_sale_order(customer=self.customer)
        courier = TestDataFactory.create_user()
        data = {'dispatch_status': 'Assigned', 'assigned_person': courier.id, 'dispatch_id': 'DSP-1'}
        response = self.client.patch(f'/api/v1/sale-orders/{order.id}/dispatch/', data, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['assigned_person_name'], courier.username)
        order.refresh_from_db()
        self.assertEqual(order.dispatch_status, 'Assigned')

    def test_dispatch_to_inactive_person(self):
        order = TestDataFactory.create_sale_order(customer=self.customer)
        courier = TestDataFactory.create_user(is_active=False)
        response = self.client.patch(f'/api/v1/sale-orders/{order.id}/dispatch/',
                                     {'assigned_person': courier.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_order(self):
        order = TestDataFactory.create_sale_order(customer=self.customer)
        response = self.client.delete(f'/api/v1/sale-orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        order.refresh_from_db()
        self.assertTrue(order.is_deleted)

    def test_delivered_order_cannot_be_deleted(self):
        order = TestDataFactory.create_sale_order(customer=self.customer, status='DELIVERED')
        response = self.client.delete(f'/api/v1/sale-orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'ORDER_DELIVERED')
        order.refresh_from_db()
        self.assertFalse(order.is_deleted)

    def test_stats(self):
        TestDataFactory.create_sale_order(customer=self.customer, lens_price=Decimal('1000.00'))
        TestDataFactory.create_sale_order(customer=self.customer, status='CONFIRMED', lens_price=Decimal('500.00'))
        TestDataFactory.create_sale_order(customer=self.customer, status='CONFIRMED',
                                          dispatch_status='Assigned', lens_price=Decimal('250.00'))

        response = self.client.get('/api/v1/sale-orders/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 3)
        self.assertEqual(response.data['byStatus'], {'DRAFT': 1, 'CONFIRMED': 2})
        self.assertEqual(response.data['byDispatchStatus'], {'Pending': 2, 'Assigned': 1})
        self.assertEqual(response.data['totalRevenue'], Decimal('1750.00'))

    def test_stats_date_range(self):
        today = timezone.localdate()
        TestDataFactory.create_sale_order(customer=self.customer, order_date=today - timedelta(days=400))
        TestDataFactory.create_sale_order(customer=self.customer)

        response = self.client.get(f'/api/v1/sale-orders/stats/?date_from={today.isoformat()}')
        self.assertEqual(response.data['total'], 1)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/sale-orders/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
