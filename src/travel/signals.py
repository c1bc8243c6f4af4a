# Remove replaced or orphaned package cover images from storage.
import logging

from django.db.models.signals import post_delete, pre_save
from django.dispatch import receiver

from .models import TravelPackage

logger = logging.getLogger(__name__)


def _delete_file(file_field):
    if not file_field:
        return
    name = file_field.name
    try:
        if name and file_field.storage.exists(name):
            file_field.storage.delete(name)
    except OSError:
        logger.warning("Could not delete package image %s", name, exc_info=True)


@receiver(post_delete, sender=TravelPackage)
def package_post_delete(sender, instance, **kwargs):
    _delete_file(instance.image)


@receiver(pre_save, sender=TravelPackage)
def package_pre_save_replace_image(sender, instance, **kwargs):
    if not instance.pk:
        return
    old = TravelPackage.objects.filter(pk=instance.pk).only('image').first()
    if old is None or not old.image:
        return
    new_name = instance.image.name if instance.image else None
    if old.image.name != new_name:
        _delete_file(old.image)
