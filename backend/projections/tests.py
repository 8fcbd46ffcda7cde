"""
Test suite for Projections module
Tests: PO matching, overdue/variance views, import archival, expiry, restore, drift and accuracy
"""
from datetime import date
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework import status

from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.projections import analytics, expiry, services
from backend.projections.matching import (
    ProjectionMatchError, extract_mto_collection, manual_match, match_projections_to_pos,
)
from backend.projections.models import ActiveProjection, ExpiredProjection, ProjectionHistory, ProjectionSnapshot


class MTOCollectionTests(TestCase):
    """Test collection extraction from program descriptions"""

    def test_known_collection(self):
        self.assertEqual(extract_mto_collection('MTO Hoxton May 2026'), 'hoxton')
        self.assertEqual(extract_mto_collection('mto - Laura/Tiff'), 'laura/tiff')

    def test_collection_after_mto_marker(self):
        self.assertEqual(extract_mto_collection('MTO: Sunset Ridge June 2026'), 'sunset ridge')

    def test_not_mto(self):
        self.assertIsNone(extract_mto_collection('Spring replenishment'))
        self.assertIsNone(extract_mto_collection(None))
        self.assertIsNone(extract_mto_collection(''))


class MatchingTests(TestCase):
    """Test automatic and manual projection matching"""

    def setUp(self):
        self.vendor = TestDataFactory.create_vendor(name='Alpha Home')
        TestDataFactory.create_vendor_alias(self.vendor, alias='AH')
        self.projection = TestDataFactory.create_projection(
            self.vendor, sku='SKU1', year=2026, month=5, quantity=100, projection_value=100000,
        )

    def _entry(self, **overrides):
        entry = {
            'po_number': 'PO1', 'vendor': 'AH', 'sku': 'sku1', 'order_quantity': 120,
            'total_value': 130000, 'original_ship_date': date(2026, 5, 10), 'program_description': None,
        }
        entry.update(overrides)
        return entry

    def test_sku_match_records_variance(self):
        result = match_projections_to_pos([self._entry()])
        self.assertEqual(result, {'matched': 1, 'variances': 1, 'errors': []})

        self.projection.refresh_from_db()
        self.assertEqual(self.projection.match_status, 'matched')
        self.assertEqual(self.projection.matched_po_number, 'PO1')
        self.assertEqual(self.projection.quantity_variance, 20)
        self.assertEqual(self.projection.value_variance, 30000)
        self.assertEqual(self.projection.variance_pct, 20)

    def test_different_month_does_not_match(self):
        result = match_projections_to_pos([self._entry(original_ship_date=date(2026, 6, 1))])
        self.assertEqual(result['matched'], 0)

    def test_projection_matches_only_once(self):
        result = match_projections_to_pos([self._entry(), self._entry(po_number='PO2')])
        self.assertEqual(result['matched'], 1)
        self.projection.refresh_from_db()
        self.assertEqual(self.projection.matched_po_number, 'PO1')

    def test_small_variance_not_counted(self):
        result = match_projections_to_pos([self._entry(order_quantity=105)])
        self.assertEqual(result['variances'], 0)

    def test_mto_match_by_collection(self):
        mto = TestDataFactory.create_projection(
            self.vendor, sku='MTO-HOX', year=2026, month=5, order_type='mto', collection='Hoxton', quantity=10,
        )
        result = match_projections_to_pos([self._entry(sku='unrelated', program_description='MTO Hoxton May 2026')])
        self.assertEqual(result['matched'], 1)
        mto.refresh_from_db()
        self.assertEqual(mto.match_status, 'matched')
        self.projection.refresh_from_db()
        self.assertEqual(self.projection.match_status, 'unmatched')

    def test_unknown_vendor_or_missing_date_skipped(self):
        result = match_projections_to_pos([self._entry(vendor='Nobody'), self._entry(original_ship_date=None)])
        self.assertEqual(result['matched'], 0)
        self.assertEqual(result['errors'], [])

    def test_manual_match_uses_po_totals(self):
        TestDataFactory.create_purchase_order(po_number='PO77', vendor=self.vendor, total_quantity=90, total_value=80000)
        projection = manual_match(self.projection.id, ' PO77 ')
        self.assertEqual(projection.matched_po_number, 'PO77')
        self.assertEqual(projection.variance_pct, -10)

    def test_manual_match_errors(self):
        with self.assertRaises(ProjectionMatchError) as ctx:
            manual_match(99999, 'PO1')
        self.assertEqual(ctx.exception.status_code, 404)

        with self.assertRaises(ProjectionMatchError) as ctx:
            manual_match(self.projection.id, 'MISSING')
        self.assertEqual(ctx.exception.status_code, 404)

        with self.assertRaises(ProjectionMatchError) as ctx:
            manual_match(self.projection.id, '')
        self.assertEqual(ctx.exception.status_code, 400)


class ProjectionServiceTests(TestCase):
    """Test overdue, variance and summary queries"""

    def setUp(self):
        self.today = date(2026, 4, 15)
        self.vendor = TestDataFactory.create_vendor(name='Beta Works')

    def test_overdue_projections(self):
        overdue = TestDataFactory.create_projection(self.vendor, year=2026, month=3)
        soon = TestDataFactory.create_projection(self.vendor, year=2026, month=6)
        TestDataFactory.create_projection(self.vendor, year=2026, month=12)
        TestDataFactory.create_projection(self.vendor, year=2026, month=3, order_type='spo')
        TestDataFactory.create_projection(self.vendor, year=2026, month=2, match_status='matched')

        rows = services.overdue_projections(today=self.today)
        self.assertEqual([r['id'] for r in rows], [overdue.id, soon.id])
        self.assertTrue(rows[0]['is_overdue'])
        self.assertEqual(rows[0]['days_until_due'], -45)
        self.assertEqual(rows[1]['days_until_due'], 47)

    def test_variance_projections(self):
        big = TestDataFactory.create_projection(self.vendor, match_status='matched', variance_pct=-35)
        TestDataFactory.create_projection(self.vendor, match_status='matched', variance_pct=5)
        TestDataFactory.create_projection(self.vendor, match_status='matched', variance_pct=50, order_type='mto')
        rows = services.variance_projections(10)
        self.assertEqual([r['id'] for r in rows], [big.id])

    def test_validation_summary(self):
        TestDataFactory.create_projection(self.vendor, year=2026, month=3)
        TestDataFactory.create_projection(self.vendor, year=2026, month=6)
        TestDataFactory.create_projection(self.vendor, match_status='matched', variance_pct=25)
        TestDataFactory.create_projection(self.vendor, match_status='expired')
        TestDataFactory.create_projection(self.vendor, order_type='spo', match_status='matched')

        summary = services.validation_summary(today=self.today)
        self.assertEqual(summary['total'], 5)
        self.assertEqual(summary['overdue'], 1)
        self.assertEqual(summary['at_risk'], 1)
        self.assertEqual(summary['matched'], 2)
        self.assertEqual(summary['removed'], 1)
        self.assertEqual(summary['with_variance'], 1)
        self.assertEqual(summary['spo_matched'], 1)

    def test_filter_options_normalizes_brands(self):
        TestDataFactory.create_projection(self.vendor, brand='CK')
        TestDataFactory.create_projection(self.vendor, brand='CB2')
        TestDataFactory.create_projection(self.vendor, brand='CBH')
        options = services.filter_options()
        self.assertEqual(options['brands'], ['C&K', 'CB2'])
        self.assertEqual(options['vendors'][0]['name'], 'Beta Works')

    def test_set_order_type_rejects_unknown(self):
        projection = TestDataFactory.create_projection(self.vendor)
        with self.assertRaises(ValueError):
            services.set_order_type(projection, 'bulk')
        services.set_order_type(projection, ' SPO ')
        projection.refresh_from_db()
        self.assertEqual(projection.order_type, 'spo')


class ProjectionImportTests(TestCase):
    """Test snapshot writes and history archival on re-import"""

    def setUp(self):
        self.vendor = TestDataFactory.create_vendor(name='Gamma')

    def _row(self, **overrides):
        row = {
            'vendor_ref_id': self.vendor.id, 'vendor_code': 'GAM', 'sku': 'S1', 'brand': 'CB',
            'year': 2026, 'month': 7, 'projection_value': 50000, 'quantity': 50,
        }
        row.update(overrides)
        return row

    def test_first_import_creates_active_rows(self):
        stats = services.import_projections([self._row(), self._row(sku='S2')], date(2026, 1, 5), 'ana')
        self.assertEqual(stats, {'snapshots': 2, 'created': 2, 'updated': 0, 'archived': 0})
        projection = ActiveProjection.objects.get(sku='S1')
        self.assertEqual(projection.last_snapshot_date, date(2026, 1, 5))
        self.assertEqual(projection.snapshot.imported_by, 'ana')

    def test_reimport_archives_and_resets_match(self):
        services.import_projections([self._row()], date(2026, 1, 5), 'ana')
        ActiveProjection.objects.update(match_status='matched', matched_po_number='PO1', actual_value=1)

        stats = services.import_projections([self._row(projection_value=70000)], date(2026, 2, 5), 'kim')
        self.assertEqual(stats, {'snapshots': 1, 'created': 0, 'updated': 1, 'archived': 1})

        projection = ActiveProjection.objects.get()
        self.assertEqual(projection.projection_value, 70000)
        self.assertEqual(projection.match_status, 'unmatched')
        self.assertIsNone(projection.matched_po_number)

        history = ProjectionHistory.objects.get()
        self.assertEqual(history.projection_value, 50000)
        self.assertEqual(history.matched_po_number, 'PO1')
        self.assertEqual(history.original_import_date, date(2026, 1, 5))
        self.assertEqual(history.original_imported_by, 'ana')
        self.assertEqual(ProjectionSnapshot.objects.count(), 2)


@override_settings(PROJECTION_REGULAR_WINDOW_DAYS=90, PROJECTION_SPO_WINDOW_DAYS=30)
class ExpiryTests(TestCase):
    """Test expiry of unmatched projections and the expired lifecycle"""

    def setUp(self):
        self.today = date(2026, 4, 15)
        self.vendor = TestDataFactory.create_vendor(name='Delta')

    def test_check_expired_projections(self):
        regular = TestDataFactory.create_projection(self.vendor, sku='R1', year=2026, month=6)
        TestDataFactory.create_projection(self.vendor, sku='R2', year=2026, month=8)
        TestDataFactory.create_projection(self.vendor, sku='M1', year=2026, month=5, order_type='mto')
        TestDataFactory.create_projection(self.vendor, sku='M2', year=2026, month=4, order_type='spo')
        TestDataFactory.create_projection(self.vendor, sku='X1', year=2026, month=1, match_status='matched')

        result = expiry.check_expired_projections(today=self.today)
        self.assertEqual(result, {'expired_count': 2, 'regular_expired': 1, 'spo_expired': 1})
        self.assertEqual(set(ActiveProjection.objects.values_list('sku', flat=True)), {'R2', 'M1', 'X1'})

        expired = ExpiredProjection.objects.get(sku='R1')
        self.assertEqual(expired.original_projection_id, regular.id)
        self.assertEqual(expired.expiration_reason, 'past_90_day_window')
        self.assertEqual(expired.target_month_end, date(2026, 6, 30))
        self.assertEqual(expired.days_overdue, 14)
        self.assertEqual(ExpiredProjection.objects.get(sku='M2').days_overdue, 15)

    def test_restore_and_verify(self):
        expired = TestDataFactory.create_expired_projection(self.vendor, sku='R9', year=2026, month=3)
        active = expiry.restore_expired(expired, 'ana')
        self.assertEqual(active.match_status, 'unmatched')
        self.assertEqual(active.sku, 'R9')
        expired.refresh_from_db()
        self.assertEqual(expired.verification_status, 'restored')
        self.assertEqual(expired.restored_by, 'ana')

        with self.assertRaises(ValueError):
            expiry.restore_expired(expired)

        other = TestDataFactory.create_expired_projection(self.vendor)
        with self.assertRaises(ValueError):
            expiry.verify_expired(other, 'maybe')
        expiry.verify_expired(other, 'Cancelled', 'buyer dropped it', 'kim')
        other.refresh_from_db()
        self.assertEqual(other.verification_status, 'cancelled')

        summary = expiry.expired_summary()
        self.assertEqual(summary, {'total': 2, 'pending': 0, 'verified': 0, 'cancelled': 1, 'restored': 1})

    def test_expiry_deadline_day_is_still_open(self):
        # June 30 less 90 days is April 1
        TestDataFactory.create_projection(self.vendor, sku='R1', year=2026, month=6)
        result = expiry.check_expired_projections(today=date(2026, 4, 1))
        self.assertEqual(result['expired_count'], 0)

        result = expiry.check_expired_projections(today=date(2026, 4, 2))
        self.assertEqual(result['expired_count'], 1)
        self.assertEqual(ExpiredProjection.objects.get(sku='R1').days_overdue, 1)

    def test_restore_refused_when_key_is_active_again(self):
        expired = TestDataFactory.create_expired_projection(self.vendor, sku='R9', year=2026, month=3, projection_value=100)
        newer = TestDataFactory.create_projection(
            self.vendor, sku='R9', year=2026, month=3, projection_value=900, match_status='matched',
        )
        with self.assertRaises(ValueError):
            expiry.restore_expired(expired, 'ana')

        newer.refresh_from_db()
        self.assertEqual(newer.projection_value, 900)
        self.assertEqual(newer.match_status, 'matched')
        expired.refresh_from_db()
        self.assertEqual(expired.verification_status, 'pending')

    def test_restored_projection_cannot_be_verified(self):
        expired = TestDataFactory.create_expired_projection(self.vendor, sku='R9', year=2026, month=3)
        expiry.restore_expired(expired, 'ana')
        with self.assertRaises(ValueError):
            expiry.verify_expired(expired, 'verified')
        expired.refresh_from_db()
        self.assertEqual(expired.verification_status, 'restored')

    def test_management_command(self):
        TestDataFactory.create_projection(self.vendor, year=2026, month=6)
        out = StringIO()
        call_command('expire_projections', '--today', '2026-04-15', stdout=out)
        self.assertIn('Expired 1 projections', out.getvalue())
        self.assertTrue(AuditLog.objects.filter(action='expire', object_id='all').exists())


class ProjectionAnalyticsTests(TestCase):
    """Test drift and accuracy reports"""

    def setUp(self):
        self.alpha = TestDataFactory.create_vendor(name='Alpha')
        self.beta = TestDataFactory.create_vendor(name='Beta')

    def test_projection_drift(self):
        TestDataFactory.create_snapshot(self.alpha, date(2026, 1, 1), sku='A1', year=2026, month=6, projection_value=1000)
        TestDataFactory.create_snapshot(self.alpha, date(2026, 1, 1), sku='A2', year=2026, month=6, projection_value=500)
        TestDataFactory.create_snapshot(self.alpha, date(2026, 2, 1), sku='A1', year=2026, month=6, projection_value=1800)
        TestDataFactory.create_snapshot(self.beta, date(2026, 2, 1), sku='B1', year=2026, month=6, projection_value=700)
        TestDataFactory.create_snapshot(self.beta, date(2026, 2, 1), sku='B1', year=2026, month=7, projection_value=99)

        report = analytics.projection_drift(2026, 6)
        self.assertEqual(report['total_uploads'], 2)
        self.assertEqual(report['vendor_count'], 2)

        alpha = report['vendors'][0]
        self.assertEqual(alpha['vendor_name'], 'Alpha')
        self.assertEqual(alpha['upload_count'], 2)
        self.assertEqual(alpha['first_projected_value'], 1500)
        self.assertEqual(alpha['drift_dollar'], 300)
        self.assertEqual(alpha['drift_pct'], 20.0)
        self.assertEqual(report['vendors'][1]['drift_pct'], 0)

    def test_drift_sums_every_code_of_a_vendor(self):
        for import_date, values in ((date(2026, 1, 1), (100, 200)), (date(2026, 2, 1), (150, 250))):
            TestDataFactory.create_snapshot(self.alpha, import_date, sku='A1', year=2026, month=6,
                                            vendor_code='AH1', projection_value=values[0])
            TestDataFactory.create_snapshot(self.alpha, import_date, sku='A1', year=2026, month=6,
                                            vendor_code='AH2', projection_value=values[1])

        report = analytics.projection_drift(2026, 6)
        self.assertEqual(report['vendor_count'], 1)
        alpha = report['vendors'][0]
        self.assertEqual(alpha['vendor_codes'], ['AH1', 'AH2'])
        self.assertEqual(alpha['upload_count'], 2)
        self.assertEqual(alpha['first_projected_value'], 300)
        self.assertEqual(alpha['last_projected_value'], 400)
        self.assertEqual(alpha['drift_dollar'], 100)

    def test_accuracy_report(self):
        TestDataFactory.create_projection(self.alpha, year=2026, month=1, projection_value=1000, match_status='matched', actual_value=1200)
        TestDataFactory.create_projection(self.alpha, year=2026, month=2, projection_value=500)
        TestDataFactory.create_projection(
            self.beta, year=2026, month=1, projection_value=300, order_type='mto', match_status='partial', actual_value=100,
        )
        TestDataFactory.create_projection(self.beta, year=2026, month=1, projection_value=9999, match_status='expired')
        TestDataFactory.create_projection(self.beta, year=2025, month=1, projection_value=9999)

        report = analytics.accuracy_report(2026)
        overall = report['overall']
        self.assertEqual(overall['total_projected'], 1800)
        self.assertEqual(overall['total_actual'], 1300)
        self.assertEqual(overall['matched_count'], 1)
        self.assertEqual(overall['partial_count'], 1)
        self.assertEqual(overall['unmatched_count'], 1)
        self.assertEqual(overall['partial_value'], 300)
        self.assertEqual(overall['overall_variance_pct'], -27.8)

        self.assertEqual(report['by_vendor'][0]['vendor_name'], 'Alpha')
        self.assertEqual(report['by_vendor'][0]['variance'], -300)

        january = report['monthly_trend'][0]
        self.assertEqual(january['projected_regular'], 1000)
        self.assertEqual(january['projected_mto'], 300)
        self.assertEqual(january['variance'], 0)
        self.assertEqual(len(report['monthly_trend']), 12)


class ProjectionAPITests(TestCase):
    """Test projection endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='ana')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.vendor = TestDataFactory.create_vendor(name='Epsilon')
        self.projection = TestDataFactory.create_projection(self.vendor, sku='E1', year=2026, month=9, quantity=10)

    def test_list_filters(self):
        TestDataFactory.create_projection(self.vendor, sku='E2', brand='CB2')
        response = self.client.get('/api/v1/projections/?brand=cb2')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get(f'/api/v1/projections/?vendor_id={self.vendor.id}&match_status=unmatched')
        self.assertEqual(response.data['count'], 2)
        response = self.client.get('/api/v1/projections/?match_status=lost')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_run_matching_is_audited(self):
        TestDataFactory.create_purchase_order(
            po_number='PO9', vendor=self.vendor, original_ship_date=date(2026, 9, 3),
            lines=[{'sku': 'E1', 'order_quantity': 10, 'line_total': 5000}],
        )
        response = self.client.post('/api/v1/projections/run-matching/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['matched'], 1)
        log = AuditLog.objects.get(action='match')
        self.assertEqual(log.object_id, 'all')

    def test_remove_requires_reason(self):
        url = f'/api/v1/projections/{self.projection.id}/remove/'
        response = self.client.post(url, {'reason': ' '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(url, {'reason': 'Style dropped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['match_status'], 'expired')
        self.assertEqual(response.data['commented_by'], 'ana')

    def test_manual_match_and_unmatch(self):
        url = f'/api/v1/projections/{self.projection.id}/match/'
        response = self.client.post(url, {'po_number': 'NOPE'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        TestDataFactory.create_purchase_order(po_number='PO5', vendor=self.vendor, total_quantity=10, total_value=100)
        response = self.client.post(url, {'po_number': 'PO5'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['matched_po_number'], 'PO5')

        response = self.client.post(f'/api/v1/projections/{self.projection.id}/unmatch/')
        self.assertEqual(response.data['match_status'], 'unmatched')
        self.assertEqual(AuditLog.objects.get(action='unmatch').changes, {'matched_po_number': 'PO5'})

    def test_order_type_and_comment(self):
        url = f'/api/v1/projections/{self.projection.id}/order-type/'
        response = self.client.patch(url, {'order_type': 'wholesale'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.patch(url, {'order_type': 'mto'}, format='json')
        self.assertEqual(response.data['order_type'], 'mto')

        response = self.client.patch(f'/api/v1/projections/{self.projection.id}/comment/', {'comment': 'chasing vendor'}, format='json')
        self.assertEqual(response.data['comment'], 'chasing vendor')

    def test_restore_twice_rejected(self):
        expired = TestDataFactory.create_expired_projection(self.vendor, sku='E5')
        url = f'/api/v1/projections/expired/{expired.id}/restore/'
        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['expired']['verification_status'], 'restored')
        self.assertEqual(response.data['projection']['sku'], 'E5')

        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_verify_expired(self):
        expired = TestDataFactory.create_expired_projection(self.vendor)
        url = f'/api/v1/projections/expired/{expired.id}/verify/'
        response = self.client.post(url, {'status': 'pending'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(url, {'status': 'verified', 'notes': 'confirmed'}, format='json')
        self.assertEqual(response.data['verification_status'], 'verified')

        response = self.client.get('/api/v1/projections/expired/?status=verified')
        self.assertEqual(response.data['count'], 1)

    def test_drift_month_validation(self):
        response = self.client.get('/api/v1/projections/drift/?target_year=2026&target_month=13')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/projections/drift/?target_year=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/projections/drift/?target_year=2026&target_month=9')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_accuracy_report_endpoint(self):
        response = self.client.get('/api/v1/projections/accuracy-report/?year=2026')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['overall']['total_projected'], 0)
