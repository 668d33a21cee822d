"""
Cache helpers for dropdown lists.

Dropdowns are small, read on nearly every form and change rarely, so they are
cached per model and dropped whenever a row of that model is saved or deleted.
"""
import logging

from django.core.cache import cache

logger = logging.getLogger('lensdesk.core')

DROPDOWN_KEY_PREFIX = 'dropdown:'
DROPDOWN_CACHE_TTL = 600  # 10 minutes


def get_dropdown_cache_key(model_name: str) -> str:
    """Get cache key for the dropdown list of a model"""
    return f"{DROPDOWN_KEY_PREFIX}{model_name.lower()}"


def cached_dropdown(model, label_field='name', extra_fields=None):
    """
    Return ``[{id, name, ...}]`` for active rows of ``model``, ordered by label.
    """
    cache_key = get_dropdown_cache_key(model.__name__)
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        logger.debug(f"Cache hit for dropdown {model.__name__}")
        return cached_data

    fields = ['id', label_field] + list(extra_fields or [])
    rows = model.objects.filter(is_active=True, is_deleted=False).order_by(label_field).values(*fields)
    data = []
    for row in rows:
        item = {'id': row['id'], 'name': row[label_field]}
        for field in extra_fields or []:
            item[field] = row[field]
        data.append(item)

    cache.set(cache_key, data, DROPDOWN_CACHE_TTL)
    logger.debug(f"Cached dropdown {model.__name__} ({len(data)} rows)")
    return data


def invalidate_dropdown(model_name: str):
    cache.delete(get_dropdown_cache_key(model_name))
    logger.debug(f"Invalidated dropdown cache for {model_name}")
