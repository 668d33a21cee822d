"""
Test suite for locations and trays
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from lensdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lensdesk.locations.models import Location, Tray


class LocationAPITests(TestCase):
    """Test location endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_location(self):
        data = {'name': ' Shop Floor ', 'location_code': 'shop-1'}
        response = self.client.post('/api/v1/locations/', data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Shop Floor')
        self.assertEqual(response.data['location_code'], 'SHOP-1')
        self.assertEqual(Location.objects.get(location_code='SHOP-1').created_by, self.user)

    def test_duplicate_location_code(self):
        TestDataFactory.create_location(location_code='SHOP-1')
        response = self.client.post('/api/v1/locations/', {'name': 'Other', 'location_code': 'shop-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'DUPLICATE_CODE')

    def test_blank_name(self):
        response = self.client.post('/api/v1/locations/', {'name': '   ', 'location_code': 'X1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'VALIDATION_ERROR')

    def test_list_search_and_active_filter(self):
        TestDataFactory.create_location(name='Back Room')
        TestDataFactory.create_location(name='Lab', is_active=False)

        response = self.client.get('/api/v1/locations/?search=back')
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/locations/?is_active=false')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Lab')

    def test_update_location(self):
        location = TestDataFactory.create_location()
        response = self.client.patch(f'/api/v1/locations/{location.id}/', {'description': 'Upstairs'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        location.refresh_from_db()
        self.assertEqual(location.description, 'Upstairs')
        self.assertEqual(location.updated_by, self.user)

    def test_delete_location_with_trays_is_blocked(self):
        location = TestDataFactory.create_location()
        TestDataFactory.create_tray(location=location)

        response = self.client.delete(f'/api/v1/locations/{location.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'LOCATION_HAS_TRAYS')

    def test_delete_location(self):
        location = TestDataFactory.create_location()
        response = self.client.delete(f'/api/v1/locations/{location.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        location.refresh_from_db()
        self.assertTrue(location.is_deleted)
        self.assertFalse(location.is_active)

        response = self.client.get(f'/api/v1/locations/{location.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_dropdown_is_refreshed_after_changes(self):
        TestDataFactory.create_location(name='Alpha')
        response = self.client.get('/api/v1/locations/dropdown/')
        self.assertEqual([row['name'] for row in response.data], ['Alpha'])

        TestDataFactory.create_location(name='Beta')
        response = self.client.get('/api/v1/locations/dropdown/')
        self.assertEqual([row['name'] for row in response.data], ['Alpha', 'Beta'])

    def test_location_trays(self):
        location = TestDataFactory.create_location()
        TestDataFactory.create_tray(location=location, name='B Tray')
        TestDataFactory.create_tray(location=location, name='A Tray')
        TestDataFactory.create_tray(location=location, name='Gone', is_deleted=True)

        response = self.client.get(f'/api/v1/locations/{location.id}/trays/')
        self.assertEqual([tray['name'] for tray in response.data], ['A Tray', 'B Tray'])


class TrayAPITests(TestCase):
    """Test tray endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.location = TestDataFactory.create_location(name='Store Room')

    def test_create_tray(self):
        data = {'name': 'Tray 1', 'tray_code': 'tr-01', 'capacity': 40, 'location': self.location.id}
        response = self.client.post('/api/v1/trays/', data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['tray_code'], 'TR-01')
        self.assertEqual(response.data['location_name'], 'Store Room')

    def test_create_tray_without_location(self):
        response = self.client.post('/api/v1/trays/', {'name': 'Tray 1', 'tray_code': 'TR-01'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INVALID_LOCATION')

    def test_create_tray_at_deleted_location(self):
        self.location.soft_delete(self.user)
        data = {'name': 'Tray 1', 'tray_code': 'TR-01', 'location': self.location.id}
        response = self.client.post('/api/v1/trays/', data, format='json')
        self.assertEqual(response.data['code'], 'INVALID_LOCATION')
        self.assertFalse(Tray.objects.exists())

    def test_negative_capacity(self):
        data = {'name': 'Tray 1', 'tray_code': 'TR-01', 'capacity': -1, 'location': self.location.id}
        response = self.client.post('/api/v1/trays/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_location(self):
        TestDataFactory.create_tray(location=self.location)
        TestDataFactory.create_tray()
        response = self.client.get(f'/api/v1/trays/?location={self.location.id}')
        self.assertEqual(response.data['count'], 1)

    def test_patch_keeps_location(self):
        tray = TestDataFactory.create_tray(location=self.location)
        response = self.client.patch(f'/api/v1/trays/{tray.id}/', {'capacity': 10}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        tray.refresh_from_db()
        self.assertEqual(tray.capacity, 10)
        self.assertEqual(tray.location, self.location)

    def test_delete_tray(self):
        tray = TestDataFactory.create_tray(location=self.location)
        response = self.client.delete(f'/api/v1/trays/{tray.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        tray.refresh_from_db()
        self.assertTrue(tray.is_deleted)
