"""Drop cached catalog entries whenever staff change packs or offerings.

The cache is cleared only after the surrounding transaction commits, so a
reader running between the write and the commit cannot put the old rows back.
"""
from __future__ import annotations

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .catalog import invalidate_institution
from .models import ElectiveCourse, ElectivePack, ExchangeUniversity, Offering


def invalidate_on_commit(institution_id: int) -> None:
    transaction.on_commit(lambda: invalidate_institution(institution_id))


@receiver(post_save, sender=ElectivePack)
@receiver(post_delete, sender=ElectivePack)
def invalidate_pack_cache(sender, instance: ElectivePack, **kwargs):
    invalidate_on_commit(instance.institution_id)


@receiver(post_save, sender=Offering)
@receiver(post_delete, sender=Offering)
@receiver(post_save, sender=ElectiveCourse)
@receiver(post_delete, sender=ElectiveCourse)
@receiver(post_save, sender=ExchangeUniversity)
@receiver(post_delete, sender=ExchangeUniversity)
def invalidate_offering_cache(sender, instance: Offering, **kwargs):
    institution_id = (
        ElectivePack.objects.filter(pk=instance.pack_id).values_list("institution_id", flat=True).first()
    )
    if institution_id is not None:
        invalidate_on_commit(institution_id)
