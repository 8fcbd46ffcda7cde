"""
Management command to run a spreadsheet import from the shell
"""
import os

from django.core.management.base import BaseCommand, CommandError

from backend.core.utils import parse_date_param
from backend.imports.importers import IMPORT_KINDS, run_import
from backend.imports.parsers import ImportFileError


class Command(BaseCommand):
    help = 'Import a .csv or .xlsx file of purchase orders, shipments, quality data, vendor capacity or projections'

    def add_arguments(self, parser):
        parser.add_argument('path', type=str, help='Path to the .csv or .xlsx file')
        parser.add_argument(
            '--type',
            dest='kind',
            required=True,
            choices=sorted(IMPORT_KINDS),
            help='What the file contains',
        )
        parser.add_argument(
            '--import-date',
            type=str,
            help='Projection import date (YYYY-MM-DD), required for --type projections',
        )
        parser.add_argument(
            '--user',
            type=str,
            default='manage.py',
            help='Name recorded as the importer (default: manage.py)',
        )

    def handle(self, *args, **options):
        path = options['path']
        kind = options['kind']
        if not os.path.exists(path):
            raise CommandError(f"File not found: {path}")

        extra = {}
        if kind == 'projections':
            try:
                extra['import_date'] = parse_date_param(options.get('import_date'))
            except ValueError:
                raise CommandError('--import-date must be YYYY-MM-DD')
            if extra['import_date'] is None:
                raise CommandError('--import-date is required for projection imports')

        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS(f"IMPORTING {kind.upper()} FROM {os.path.basename(path)}"))
        self.stdout.write(self.style.SUCCESS("=" * 80))

        with open(path, 'rb') as f:
            try:
                result = run_import(kind, f, os.path.basename(path), imported_by=options['user'], **extra)
            except ImportFileError as e:
                raise CommandError(str(e))

        for warning in result['warnings']:
            self.stdout.write(self.style.WARNING(warning))
        self.stdout.write(self.style.SUCCESS(
            f"Imported {result['records_imported']} rows, skipped {result['records_skipped']} ({result['status']})"
        ))
