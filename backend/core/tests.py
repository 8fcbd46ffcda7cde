"""
Test suite for Core module
Tests: authentication, audit log access, shared helpers
"""
from datetime import date
from types import SimpleNamespace

from django.test import TestCase
from rest_framework import status

from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import (
    add_months, create_audit_log, month_bounds, page_params, parse_bool_param, parse_date_param, pct, retention_cutoff,
)


class HelperTests(TestCase):
    """Test the shared helpers"""

    def test_page_params(self):
        request = SimpleNamespace(query_params={})
        self.assertEqual(page_params(request, default_limit=25), (1, 25))
        request = SimpleNamespace(query_params={'page': '3', 'limit': '500'})
        self.assertEqual(page_params(request), (3, 500))
        for params in ({'limit': '0'}, {'limit': '501'}, {'page': '0'}, {'page': 'x'}):
            with self.assertRaises(ValueError):
                page_params(SimpleNamespace(query_params=params))

    def test_parse_date_param(self):
        self.assertIsNone(parse_date_param(''))
        self.assertIsNone(parse_date_param(None))
        self.assertEqual(parse_date_param('2025-03-01'), date(2025, 3, 1))
        with self.assertRaises(ValueError):
            parse_date_param('03/01/2025')

    def test_pct_handles_zero_whole(self):
        self.assertEqual(pct(5, 0), 0)
        self.assertEqual(pct(1, 3), 33.3)
        self.assertEqual(pct(1, 3, places=0), 33.0)

    def test_month_bounds(self):
        self.assertEqual(month_bounds(2024, 2), (date(2024, 2, 1), date(2024, 2, 29)))
        self.assertEqual(month_bounds(2025, 12), (date(2025, 12, 1), date(2025, 12, 31)))

    def test_add_months_clamps_day(self):
        self.assertEqual(add_months(date(2025, 1, 31), 1), date(2025, 2, 28))
        self.assertEqual(add_months(date(2024, 2, 29), -12), date(2023, 2, 28))
        self.assertEqual(add_months(date(2025, 11, 15), 3), date(2026, 2, 15))

    def test_retention_cutoff(self):
        self.assertEqual(retention_cutoff(date(2026, 6, 30), 2), date(2024, 1, 1))

    def test_parse_bool_param(self):
        self.assertTrue(parse_bool_param('true'))
        self.assertTrue(parse_bool_param('1'))
        self.assertFalse(parse_bool_param('no'))
        self.assertFalse(parse_bool_param(None))

    def test_create_audit_log_skips_missing_fields(self):
        self.assertIsNone(create_audit_log(action='create', model_name='Vendor', object_id=None))
        self.assertEqual(AuditLog.objects.count(), 0)


class AuthTests(TestCase):
    """Test login and current user endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='merch1', password='secret-pass-1')
        self.client = AuthenticatedAPIClient()

    def test_login_returns_token_pair(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'merch1', 'password': 'secret-pass-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'merch1', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_with_staff_profile(self):
        TestDataFactory.create_staff(name='Ana Merch', user=self.user, access_level='level_1')
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['staff']['name'], 'Ana Merch')
        self.assertEqual(response.data['access_level'], 'level_1')


class AuditLogTests(TestCase):
    """Test audit log visibility"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_user(is_staff=True)
        self.own_log = create_audit_log(user=self.user, action='create', model_name='Vendor', object_id='1')
        self.other_log = create_audit_log(user=self.other, action='update', model_name='Client', object_id='2')
        self.client = AuthenticatedAPIClient()

    def test_non_staff_only_sees_own_logs(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], self.own_log.id)

    def test_staff_sees_all_logs_and_filters(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.data['count'], 2)
        response = self.client.get('/api/v1/audit-logs/?model=Client')
        self.assertEqual(response.data['count'], 1)

    def test_detail_of_other_users_log_forbidden(self):
        self.client.authenticate_user(self.user)
        response = self.client.get(f'/api/v1/audit-logs/{self.other_log.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_bad_date_filter(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/?date_from=yesterday')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
