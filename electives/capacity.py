"""Live occupancy of offerings.

Occupancy is always recounted from the selection items; it is never cached or
stored, so an admission decision never sees a stale number.
"""
from __future__ import annotations

from collections.abc import Iterable

from django.db.models import Count

from .exceptions import translate_database_errors
from .models import Offering, Selection, SelectionItem


def _active_items():
    return SelectionItem.objects.filter(selection__status__in=Selection.ACTIVE_STATUSES)


@translate_database_errors
def occupancy(offering_id: int, exclude_selection_id: int | None = None) -> int:
    """Number of pending or approved selections that claim the offering."""
    items = _active_items().filter(offering_id=offering_id)
    if exclude_selection_id is not None:
        items = items.exclude(selection_id=exclude_selection_id)
    return items.count()


def is_full(offering: Offering) -> bool:
    return occupancy(offering.pk) >= offering.max_capacity


@translate_database_errors
def occupancy_by_offering(offering_ids: Iterable[int]) -> dict[int, int]:
    ids = list(offering_ids)
    counts = dict.fromkeys(ids, 0)
    if not ids:
        return counts
    rows = (
        _active_items()
        .filter(offering_id__in=ids)
        .values("offering_id")
        .annotate(taken=Count("id"))
        .order_by()
    )
    for row in rows:
        counts[row["offering_id"]] = row["taken"]
    return counts
