"""
Signals for the Loyalty application.
Handles cache invalidation when promotions are updated.
"""

from django.core.cache import cache
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from loyalty.models import Promotion
from loyalty.services import AUTOMATIC_PROMOTIONS_CACHE_KEY


@receiver([post_save, post_delete], sender=Promotion)
def clear_promotion_cache(sender, instance, **kwargs):
    """
    Clears the automatic promotions cache whenever a promotion is saved or deleted,
    so purchases always see up-to-date promotion rules.
    """
    cache.delete(AUTOMATIC_PROMOTIONS_CACHE_KEY)
