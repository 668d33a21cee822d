"""
Cache invalidation signals
Drop cached dropdown lists when master data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .cache_utils import invalidate_dropdown

DROPDOWN_MODELS = {
    'Location', 'Tray',
    'LensBrand', 'LensCategory', 'LensMaterial', 'LensType',
    'LensCoating', 'LensTinting', 'LensFitting', 'LensDia', 'LensProduct',
    'Department', 'BusinessCategory', 'Customer', 'Vendor',
}


@receiver([post_save, post_delete])
def invalidate_dropdown_cache(sender, instance, **kwargs):
    """Invalidate the dropdown cache of the model that changed"""
    if sender.__name__ in DROPDOWN_MODELS:
        invalidate_dropdown(sender.__name__)
