"""Shared list helpers: pagination, search and active-row lookups"""
from django.core.paginator import Paginator
from django.db.models import Q
from rest_framework.response import Response

from .exceptions import NotFoundError

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def _positive_int(value, default):
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def paginate(request, queryset, serializer_class, context=None, default_limit=DEFAULT_PAGE_SIZE):
    """Serialize one page of ``queryset`` in the standard list envelope"""
    page = _positive_int(request.query_params.get('page'), 1)
    limit = min(_positive_int(request.query_params.get('limit'), default_limit), MAX_PAGE_SIZE)

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


def apply_search(queryset, request, fields):
    """icontains OR-search across ``fields`` using the ``search`` query param"""
    term = request.query_params.get('search', '').strip()
    if not term:
        return queryset
    query = Q()
    for field in fields:
        query |= Q(**{f'{field}__icontains': term})
    return queryset.filter(query)


def apply_active_filter(queryset, request):
    value = request.query_params.get('is_active')
    if value is None or value == '':
        return queryset
    return queryset.filter(is_active=value.lower() in ('1', 'true', 'yes'))


def get_live_or_404(model, pk, label=None):
    """Fetch a row that has not been soft-deleted or raise NotFoundError"""
    try:
        return model.objects.get(pk=pk, is_deleted=False)
    except model.DoesNotExist:
        raise NotFoundError(f"{label or model._meta.verbose_name.title()} not found")
