"""
Test suite for core: authentication, users, departments, audit and error logs,
error response shape and shared helpers
"""
from django.core.cache import cache
from django.test import TestCase, RequestFactory
from rest_framework import status
from lensdesk.core.models import AuditLog, ErrorLog
from lensdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lensdesk.core.utils import create_audit_log, diff_values, sanitize_request_body


class AuthAPITests(TestCase):
    """Test login, refresh, logout, me and change-password"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='optician', password='testpass123')
        self.client = AuthenticatedAPIClient()

    def login(self, password='testpass123'):
        return self.client.post('/api/v1/auth/login/', {'username': 'optician', 'password': password}, format='json')

    def test_login(self):
        response = self.login()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['username'], 'optician')
        self.assertTrue(AuditLog.objects.filter(action='LOGIN', user=self.user).exists())

    def test_failed_login_is_audited(self):
        response = self.login(password='wrong')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        log = AuditLog.objects.get(action='LOGIN_FAILED')
        self.assertFalse(log.success)
        self.assertEqual(log.object_name, 'optician')
        # 401s do not land in the error log
        self.assertFalse(ErrorLog.objects.exists())

    def test_refresh(self):
        refresh = self.login().data['refresh']
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_refresh_for_deactivated_user(self):
        refresh = self.login().data['refresh']
        self.user.is_active = False
        self.user.save()
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_blacklists_refresh_token(self):
        tokens = self.login().data
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        response = self.client.post('/api/v1/auth/logout/', {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.post('/api/v1/auth/refresh/', {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_requires_refresh_token(self):
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/auth/logout/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_me(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.data['username'], 'optician')
        self.assertFalse(response.data['is_admin'])

    def test_change_password(self):
        self.client.authenticate_user(self.user)
        data = {'old_password': 'testpass123', 'new_password': 'Sharper-Focus-2024'}
        response = self.client.post('/api/v1/auth/change-password/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('Sharper-Focus-2024'))

    def test_change_password_wrong_old_password(self):
        self.client.authenticate_user(self.user)
        data = {'old_password': 'nope', 'new_password': 'Sharper-Focus-2024'}
        response = self.client.post('/api/v1/auth/change-password/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Current password is incorrect')


class UserAPITests(TestCase):
    """Test the staff-only user endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_non_staff_is_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_user(self):
        data = {
            'username': 'frontdesk',
            'usercode': 'FD01',
            'email': 'frontdesk@test.com',
            'password': 'Sharper-Focus-2024',
            'password_confirm': 'Sharper-Focus-2024',
            'phone': '9876543210',
        }
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotIn('password', response.data)

        log = AuditLog.objects.get(action='CREATE', model_name='User')
        self.assertNotIn('password', log.new_values)

    def test_password_mismatch(self):
        data = {'username': 'frontdesk', 'password': 'Sharper-Focus-2024', 'password_confirm': 'other'}
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_deactivate_user(self):
        user = TestDataFactory.create_user()
        response = self.client.delete(f'/api/v1/users/{user.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        user.refresh_from_db()
        self.assertFalse(user.is_active)

    def test_cannot_deactivate_self(self):
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'SELF_DELETE')


class DepartmentAPITests(TestCase):
    """Test the department master and its link to users"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_department(self):
        response = self.client.post('/api/v1/departments/', {'name': ' Fitting ', 'description': 'Lens fitting'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Fitting')
        self.assertEqual(response.data['user_count'], 0)
        self.assertTrue(AuditLog.objects.filter(action='CREATE', model_name='Department').exists())

    def test_duplicate_name(self):
        TestDataFactory.create_department(name='Dispatch')
        response = self.client.post('/api/v1/departments/', {'name': 'dispatch'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'DUPLICATE_NAME')

    def test_list_search_and_active_filter(self):
        TestDataFactory.create_department(name='Front Desk')
        TestDataFactory.create_department(name='Accounts', is_active=False)
        response = self.client.get('/api/v1/departments/?search=front')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/departments/?is_active=false')
        self.assertEqual(response.data['results'][0]['name'], 'Accounts')

    def test_update_department(self):
        department = TestDataFactory.create_department(name='Fitting')
        response = self.client.patch(f'/api/v1/departments/{department.id}/', {'name': 'Fitting Lab'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        department.refresh_from_db()
        self.assertEqual(department.name, 'Fitting Lab')

    def test_delete_department_with_users_is_blocked(self):
        department = TestDataFactory.create_department()
        TestDataFactory.create_user(department=department)
        response = self.client.delete(f'/api/v1/departments/{department.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'DEPARTMENT_HAS_USERS')

    def test_delete_department(self):
        department = TestDataFactory.create_department()
        TestDataFactory.create_user(department=department, is_active=False)
        response = self.client.delete(f'/api/v1/departments/{department.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = self.client.get(f'/api/v1/departments/{department.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_dropdown_is_refreshed_after_create(self):
        TestDataFactory.create_department(name='Fitting')
        self.assertEqual([row['name'] for row in self.client.get('/api/v1/departments/dropdown/').data], ['Fitting'])
        self.client.post('/api/v1/departments/', {'name': 'Accounts'}, format='json')
        response = self.client.get('/api/v1/departments/dropdown/')
        self.assertEqual([row['name'] for row in response.data], ['Accounts', 'Fitting'])

    def test_assign_user_and_filter_by_department(self):
        department = TestDataFactory.create_department(name='Fitting')
        user = TestDataFactory.create_user()
        TestDataFactory.create_user()
        response = self.client.patch(f'/api/v1/users/{user.id}/', {'department': department.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['department_name'], 'Fitting')

        response = self.client.get(f'/api/v1/users/?department={department.id}')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], user.id)

    def test_inactive_department_cannot_be_assigned(self):
        department = TestDataFactory.create_department(is_active=False)
        user = TestDataFactory.create_user()
        response = self.client.patch(f'/api/v1/users/{user.id}/', {'department': department.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('department', response.data['details'])


class LogAPITests(TestCase):
    """Test audit log and error log endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()

    def test_users_see_only_their_audit_entries(self):
        create_audit_log(action='CREATE', model_name='Customer', object_id=1, user=self.user)
        create_audit_log(action='CREATE', model_name='Customer', object_id=2, user=self.admin)

        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.data['count'], 1)

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/?model=customer')
        self.assertEqual(response.data['count'], 2)

    def test_audit_detail_of_other_user_is_forbidden(self):
        log = create_audit_log(action='CREATE', model_name='Customer', object_id=1, user=self.admin)
        self.client.authenticate_user(self.user)
        response = self.client.get(f'/api/v1/audit-logs/{log.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_errors_are_logged_with_sanitized_body(self):
        self.client.authenticate_user(self.user)
        self.client.post('/api/v1/auth/change-password/', {'old_password': 'wrong', 'new_password': 'x'},
                         format='json')

        error = ErrorLog.objects.get()
        self.assertEqual(error.status_code, 400)
        self.assertEqual(error.code, 'VALIDATION_ERROR')
        self.assertEqual(error.severity, 'WARNING')
        self.assertEqual(error.request_body['old_password'], '***')
        self.assertEqual(error.user, self.user)

    def test_error_log_stats(self):
        ErrorLog.objects.create(error_type='ValidationError', message='bad', status_code=400, severity='WARNING')
        ErrorLog.objects.create(error_type='KeyError', message='boom', status_code=500, severity='CRITICAL')

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/error-logs/stats/')
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['serverErrors'], 1)
        self.assertEqual(response.data['bySeverity'], {'WARNING': 1, 'CRITICAL': 1})

    def test_error_logs_are_staff_only(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/error-logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ErrorShapeTests(TestCase):
    """Every error response carries ``error`` and ``code``"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_not_found(self):
        response = self.client.get('/api/v1/customers/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': 'Customer not found', 'code': 'NOT_FOUND'})

    def test_unauthenticated(self):
        self.client.logout()
        response = self.client.get('/api/v1/customers/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('error', response.data)
        self.assertEqual(response.data['code'], 'NOT_AUTHENTICATED')

    def test_validation_error_has_details(self):
        response = self.client.post('/api/v1/locations/', {}, format='json')
        self.assertEqual(response.data['code'], 'VALIDATION_ERROR')
        self.assertIn('name', response.data['details'])


class UtilsTests(TestCase):
    """Test audit helpers"""

    def test_diff_values(self):
        changes = diff_values({'name': 'A', 'city': 'Pune'}, {'name': 'B', 'city': 'Pune', 'phone': '1'})
        self.assertEqual(changes, {'name': {'old': 'A', 'new': 'B'}, 'phone': {'old': None, 'new': '1'}})

    def test_sanitize_nested(self):
        body = {'username': 'x', 'password': 'secret', 'items': [{'api_key': 'k', 'value': 1}]}
        self.assertEqual(sanitize_request_body(body),
                         {'username': 'x', 'password': '***', 'items': [{'api_key': '***', 'value': 1}]})

    def test_audit_log_without_object_id_is_skipped(self):
        self.assertIsNone(create_audit_log(action='CREATE', model_name='Customer'))
        self.assertFalse(AuditLog.objects.exists())

    def test_audit_log_reads_request(self):
        user = TestDataFactory.create_user()
        request = RequestFactory().post('/api/v1/customers/', HTTP_X_FORWARDED_FOR='10.0.0.7, 10.0.0.1',
                                        HTTP_USER_AGENT='pytest')
        request.user = user
        log = create_audit_log(request, 'CREATE', 'Customer', 5, object_name='Vision Care')
        self.assertEqual(log.user, user)
        self.assertEqual(log.ip_address, '10.0.0.7')
        self.assertEqual(log.user_agent, 'pytest')
        self.assertEqual(log.method, 'POST')
        self.assertEqual(log.object_id, '5')
