"""Shared helpers: audit logging, query param parsing, pagination and month arithmetic"""
import calendar
import logging
from datetime import date, datetime

from django.core.paginator import Paginator
from rest_framework import status
from rest_framework.response import Response

from .models import AuditLog

logger = logging.getLogger('backend.core')


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, import, match, expire, ...)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object (e.g., vendor name, file name)
        object_reference: Reference identifier (e.g., PO number, SKU)
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user

        ip_address = get_client_ip(request) if request else None

        if not action or not model_name or object_id in (None, ''):
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def parse_date_param(value):
    """Parse a YYYY-MM-DD query param. Empty values give None, bad values raise ValueError."""
    if value in (None, ''):
        return None
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value).strip(), '%Y-%m-%d').date()


def parse_int_param(value, default=None):
    if value in (None, ''):
        return default
    return int(value)


def parse_bool_param(value):
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def pct(part, whole, places=1):
    """Percentage of part in whole, 0 when whole is empty"""
    if not whole:
        return 0
    return round(float(part) / float(whole) * 100, places)


def month_bounds(year, month):
    """First and last day of a calendar month"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def add_months(d, months):
    """Shift a date by whole months, clamping the day to the target month"""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def retention_cutoff(today, years):
    """Jan 1 of (today's year - years); rows dated before it fall outside retention"""
    return date(today.year - years, 1, 1)


MAX_PAGE_SIZE = 500


def page_params(request, default_limit=50):
    """page and limit query params; raises ValueError when either is not a positive integer in range"""
    try:
        page = parse_int_param(request.query_params.get('page'), 1)
        limit = parse_int_param(request.query_params.get('limit'), default_limit)
    except ValueError:
        raise ValueError('page and limit must be integers')
    if page < 1:
        raise ValueError('page must be 1 or greater')
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValueError(f'limit must be between 1 and {MAX_PAGE_SIZE}')
    return page, limit


def _envelope(paginator, page_obj, limit, results):
    return Response({
        'results': results,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


def paginate(request, queryset, serializer_class, default_limit=50, context=None):
    """Page/limit pagination returning the standard list envelope"""
    try:
        page, limit = page_params(request, default_limit)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return _envelope(paginator, page_obj, limit, serializer.data)


def paginate_rows(request, rows, default_limit=50):
    """Same envelope as paginate() for rows that are already plain dicts"""
    try:
        page, limit = page_params(request, default_limit)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    paginator = Paginator(rows, limit)
    page_obj = paginator.get_page(page)
    return _envelope(paginator, page_obj, limit, list(page_obj.object_list))
