"""
Django management command to expire unmatched projections whose order window has closed
"""
from django.core.management.base import BaseCommand, CommandError

from backend.core.utils import create_audit_log, parse_date_param
from backend.projections.expiry import check_expired_projections


class Command(BaseCommand):
    help = 'Move unmatched projections past their 90/30 day order window to the expired table'

    def add_arguments(self, parser):
        parser.add_argument(
            '--today',
            type=str,
            help='Evaluate as of this date (YYYY-MM-DD) instead of today',
        )

    def handle(self, *args, **options):
        try:
            today = parse_date_param(options.get('today'))
        except ValueError:
            raise CommandError('--today must be a YYYY-MM-DD date')

        result = check_expired_projections(today=today)
        if result['expired_count']:
            create_audit_log(
                action='expire',
                model_name='ActiveProjection',
                object_id='all',
                object_name='expire_projections command',
                changes=result,
            )

        self.stdout.write(self.style.SUCCESS(
            f"Expired {result['expired_count']} projections "
            f"({result['regular_expired']} regular, {result['spo_expired']} MTO/SPO)"
        ))
