from django.urls import path
from .views import (
    inspection_list, inspector_list, quality_test_list,
    quality_kpis, quality_at_risk_pos,
    booking_confirmed, missing_inline, missing_final, failed_inspections,
    expiring_certificates, compliance_alert_counts, vendor_performance
)

urlpatterns = [
    path('inspections/', inspection_list, name='inspection-list'),
    path('inspections/inspectors/', inspector_list, name='inspection-inspectors'),
    path('quality-tests/', quality_test_list, name='quality-test-list'),

    # Quality dashboard
    path('quality/kpis/', quality_kpis, name='quality-kpis'),
    path('quality/at-risk-pos/', quality_at_risk_pos, name='quality-at-risk-pos'),

    # Compliance alerts
    path('quality-compliance/booking-confirmed/', booking_confirmed, name='compliance-booking-confirmed'),
    path('quality-compliance/missing-inline/', missing_inline, name='compliance-missing-inline'),
    path('quality-compliance/missing-final/', missing_final, name='compliance-missing-final'),
    path('quality-compliance/failed-inspections/', failed_inspections, name='compliance-failed-inspections'),
    path('quality-compliance/expiring-certificates/', expiring_certificates, name='compliance-expiring-certificates'),
    path('quality-compliance/alert-counts/', compliance_alert_counts, name='compliance-alert-counts'),
    path('quality-compliance/vendor-performance/', vendor_performance, name='compliance-vendor-performance'),
]
