"""
Reading uploaded spreadsheets into rows of canonical field names.

CSV files go through the csv module, XLSX through openpyxl in read-only,
values-only mode. The first non-empty row is the header; header cells are
normalized to snake_case and known synonyms are mapped onto field names.
"""
import csv
import io
import logging
import os
import re
from collections import namedtuple
from datetime import date, datetime
from zipfile import BadZipFile

from django.conf import settings
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger('backend.imports')

SUPPORTED_EXTENSIONS = {'.csv': 'csv', '.xlsx': 'xlsx'}

DATE_FORMATS = ['%Y-%m-%d', '%m/%d/%Y', '%m/%d/%y', '%d-%b-%Y', '%d-%b-%y', '%Y/%m/%d']


class ImportFileError(Exception):
    """The file as a whole cannot be imported"""


def detect_file_type(file_name):
    extension = os.path.splitext(file_name or '')[1].lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise ImportFileError(f"Unsupported file type '{extension or file_name}'. Upload a .csv or .xlsx file")
    return SUPPORTED_EXTENSIONS[extension]


def check_file_size(file_obj):
    """Raise ImportFileError when the file is over IMPORT_MAX_UPLOAD_MB"""
    size = getattr(file_obj, 'size', None)
    if size is None:
        file_obj.seek(0, os.SEEK_END)
        size = file_obj.tell()
        file_obj.seek(0)
    if size > settings.IMPORT_MAX_UPLOAD_MB * 1024 * 1024:
        raise ImportFileError(f"File is larger than the {settings.IMPORT_MAX_UPLOAD_MB} MB upload limit")
    return size


def normalize_header(cell):
    """'PO #' -> 'po_number', 'Revised Ship Date' -> 'revised_ship_date'"""
    text = str(cell or '').strip().lower()
    text = text.replace('#', ' number ').replace('%', ' pct ').replace('&', ' and ')
    text = re.sub(r'[^a-z0-9]+', '_', text)
    return text.strip('_')


def _is_blank(values):
    return all(value is None or (isinstance(value, str) and not value.strip()) for value in values)


def _csv_rows(file_obj):
    data = file_obj.read()
    if isinstance(data, bytes):
        try:
            data = data.decode('utf-8-sig')
        except UnicodeDecodeError:
            data = data.decode('latin-1')
    return csv.reader(io.StringIO(data))


def _xlsx_rows(file_obj):
    try:
        workbook = load_workbook(file_obj, read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError) as e:
        raise ImportFileError(f"Could not read workbook: {str(e)}")
    try:
        worksheet = workbook.active
        return [list(row) for row in worksheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def read_table(file_obj, file_name, synonyms=None):
    """
    Return a list of (row_number, {field: raw value}) for every non-empty data
    row. row_number is the 1-based line in the file.
    """
    file_type = detect_file_type(file_name)
    raw_rows = _csv_rows(file_obj) if file_type == 'csv' else _xlsx_rows(file_obj)
    synonyms = synonyms or {}

    header = None
    rows = []
    for row_number, values in enumerate(raw_rows, start=1):
        if _is_blank(values):
            continue
        if header is None:
            header = [synonyms.get(normalize_header(cell), normalize_header(cell)) for cell in values]
            continue
        rows.append((row_number, {name: value for name, value in zip(header, values) if name}))
        if len(rows) > settings.IMPORT_MAX_ROWS:
            raise ImportFileError(f"File has more than {settings.IMPORT_MAX_ROWS} rows")

    if header is None:
        raise ImportFileError('File is empty')
    logger.info(f"Read {len(rows)} rows from {file_name}")
    return rows


# Value parsers. Each takes a raw cell and returns a clean value or None,
# raising ValueError for a value that is present but malformed.
def parse_text(value):
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def parse_date(value):
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValueError(f"invalid date '{text}'")


def parse_int(value):
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"invalid number '{value}'")
    if isinstance(value, (int, float)):
        return int(round(value))
    text = str(value).strip().replace(',', '').replace('$', '')
    if not text:
        return None
    if text.startswith('(') and text.endswith(')'):
        text = '-' + text[1:-1]
    try:
        return int(round(float(text)))
    except ValueError:
        raise ValueError(f"invalid number '{value}'")


# Money columns already carry cents
parse_money = parse_int


Field = namedtuple('Field', ['name', 'parser', 'required'])


def field(name, parser=parse_text, required=False):
    return Field(name, parser, required)


def clean_row(raw, fields):
    """Apply the field parsers; raises ValueError naming the first bad or missing field"""
    cleaned = {}
    for column in fields:
        if column.name not in raw:
            if column.required:
                raise ValueError(f"missing required field '{column.name}'")
            continue
        try:
            value = column.parser(raw[column.name])
        except ValueError as e:
            raise ValueError(f"{column.name}: {str(e)}")
        if value is None:
            if column.required:
                raise ValueError(f"missing required field '{column.name}'")
            continue
        cleaned[column.name] = value
    return cleaned
