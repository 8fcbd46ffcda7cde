from django.urls import path
from . import views

urlpatterns = [
    path('projections/', views.projection_list, name='projection-list'),
    path('projections/overdue/', views.overdue_projections, name='projection-overdue'),
    path('projections/variances/', views.variance_projections, name='projection-variances'),
    path('projections/spo/', views.spo_projections, name='projection-spo'),
    path('projections/filter-options/', views.projection_filter_options, name='projection-filter-options'),
    path('projections/validation-summary/', views.validation_summary, name='projection-validation-summary'),
    path('projections/run-matching/', views.run_matching, name='projection-run-matching'),
    path('projections/check-expired/', views.check_expired, name='projection-check-expired'),
    path('projections/drift/', views.projection_drift, name='projection-drift'),
    path('projections/accuracy-report/', views.accuracy_report, name='projection-accuracy-report'),
    path('projections/expired/', views.expired_projection_list, name='expired-projection-list'),
    path('projections/expired/summary/', views.expired_projection_summary, name='expired-projection-summary'),
    path('projections/expired/<int:pk>/restore/', views.restore_expired_projection, name='expired-projection-restore'),
    path('projections/expired/<int:pk>/verify/', views.verify_expired_projection, name='expired-projection-verify'),
    path('projections/<int:pk>/remove/', views.remove_projection, name='projection-remove'),
    path('projections/<int:pk>/unmatch/', views.unmatch_projection, name='projection-unmatch'),
    path('projections/<int:pk>/match/', views.match_projection, name='projection-match'),
    path('projections/<int:pk>/order-type/', views.update_order_type, name='projection-order-type'),
    path('projections/<int:pk>/comment/', views.update_comment, name='projection-comment'),
]
