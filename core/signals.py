"""
Keep a center's derived rating in step with its reviews.

Every review write reaches these receivers, admin bulk deletes and
FK cascades included.  They run inside the writer's transaction, so a
failed recompute rolls the review change back with it.  Queryset
``update()`` sends no signals; ``manage.py recompute_ratings`` repairs
that kind of drift.
"""
from django.core.cache import cache
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from core.models import Review
from core.services.ratings import recompute_center_rating
from core.services.reviews import cache_key


@receiver(post_save, sender=Review, dispatch_uid='review_saved_refresh_rating')
def review_saved(sender, instance, raw=False, **kwargs):
    if raw:
        return
    _refresh(instance.center_id)


@receiver(post_delete, sender=Review, dispatch_uid='review_deleted_refresh_rating')
def review_deleted(sender, instance, **kwargs):
    _refresh(instance.center_id)


def _refresh(center_id: int) -> None:
    recompute_center_rating(center_id)
    key = cache_key(center_id)
    cache.delete(key)
    # A reader may re-cache the old list before the writer commits
    transaction.on_commit(lambda: cache.delete(key))
