"""Admission control and writes for student selections.

A submission is decided and written inside one transaction. Rows are locked in
a fixed order (student profile, offerings by primary key, existing selection)
so two students racing for the last seat are serialized and the loser sees the
winner's claim when occupancy is recounted. On SQLite, where ``SELECT ... FOR
UPDATE`` is a no-op, the connection opens every transaction with ``BEGIN
IMMEDIATE`` which serializes writers for the whole database.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from django.db import transaction

from accounts.models import StudentProfile

from .capacity import occupancy
from .deadline import ensure_open, server_now
from .exceptions import (
    OfferingFull,
    PackNotOpen,
    SelectionCountInvalid,
    SelectionLocked,
    SelectionNotFound,
    UnknownOffering,
    translate_database_errors,
)
from .models import ElectivePack, Offering, Selection, SelectionItem

logger = logging.getLogger(__name__)


def load_pack_for_student(pack_id: int, student: StudentProfile) -> ElectivePack:
    pack = ElectivePack.objects.filter(pk=pack_id, institution_id=student.institution_id).first()
    if pack is None:
        raise PackNotOpen("选课包不存在或不属于您所在的院校。")
    return pack


def validate_count(pack: ElectivePack, offering_ids: Sequence) -> None:
    count = len(offering_ids)
    if count < 1 or count > pack.max_selections:
        raise SelectionCountInvalid(
            f"需选择 1 至 {pack.max_selections} 项，当前选择了 {count} 项。",
            max_selections=pack.max_selections,
            submitted=count,
        )
    if len(set(offering_ids)) != count:
        raise SelectionCountInvalid("所选项目存在重复。", max_selections=pack.max_selections, submitted=count)


def lock_offerings(pack: ElectivePack, offering_ids: Sequence) -> dict[int, Offering]:
    """Lock the chosen offerings of ``pack`` by primary key order and return them by id."""
    try:
        ids = [int(value) for value in offering_ids]
    except (TypeError, ValueError):
        raise UnknownOffering(unknown_ids=[str(value) for value in offering_ids]) from None

    offerings = {
        offering.pk: offering
        for offering in Offering.objects.select_for_update()
        .filter(pack=pack, is_active=True, pk__in=ids)
        .order_by("pk")
    }
    unknown = [value for value in ids if value not in offerings]
    if unknown:
        raise UnknownOffering(unknown_ids=unknown)
    return offerings


def ensure_capacity(
    offerings: Iterable[Offering],
    already_held: set[int] | frozenset[int] = frozenset(),
    exclude_selection_id: int | None = None,
) -> None:
    """Raise OfferingFull for the first offering without a free seat.

    Offerings in ``already_held`` are skipped: the caller's own active claim is
    already part of their occupancy.
    """
    for offering in offerings:
        if offering.pk in already_held:
            continue
        taken = occupancy(offering.pk, exclude_selection_id=exclude_selection_id)
        if taken >= offering.max_capacity:
            logger.warning(
                "Offering %s is full (%s/%s)", offering.pk, taken, offering.max_capacity
            )
            raise OfferingFull(offering)


def replace_items(selection: Selection, offering_ids: Sequence[int]) -> None:
    selection.items.all().delete()
    SelectionItem.objects.bulk_create(
        [
            SelectionItem(selection=selection, offering_id=offering_id, position=position)
            for position, offering_id in enumerate(offering_ids)
        ]
    )


@translate_database_errors
def submit_selection(
    student_id: int,
    pack_id: int,
    offering_ids: Sequence,
    statement_url: str | None = None,
) -> Selection:
    """Create or amend the student's single selection for a pack.

    Checks run in a fixed order and each failure has its own exception type:
    PackNotOpen, DeadlinePassed, SelectionCountInvalid, UnknownOffering,
    OfferingFull, SelectionLocked. A successful call leaves the selection
    ``pending``; a failed one leaves no partial state.
    """
    offering_ids = list(offering_ids)
    with transaction.atomic():
        student = StudentProfile.objects.select_for_update().get(pk=student_id)
        pack = load_pack_for_student(pack_id, student)
        ensure_open(pack, server_now())
        validate_count(pack, offering_ids)
        offerings = lock_offerings(pack, offering_ids)
        ordered_ids = [int(value) for value in offering_ids]

        existing = Selection.objects.select_for_update().filter(student=student, pack=pack).first()
        prior_ids = existing.chosen_offering_ids() if existing is not None else []
        held = set(prior_ids) if existing is not None and existing.is_active else set()
        ensure_capacity((offerings[offering_id] for offering_id in ordered_ids), already_held=held)

        if existing is not None and existing.status != Selection.STATUS_PENDING:
            raise SelectionLocked()

        if existing is None:
            selection = Selection.objects.create(
                student=student,
                pack=pack,
                status=Selection.STATUS_PENDING,
                statement_url=statement_url or "",
            )
            replace_items(selection, ordered_ids)
            logger.info(
                "Student %s created selection %s for pack %s: %s",
                student.pk,
                selection.pk,
                pack.pk,
                ordered_ids,
            )
            return selection

        selection = existing
        changed_fields = []
        if statement_url is not None and statement_url != selection.statement_url:
            selection.statement_url = statement_url
            changed_fields.append("statement_url")
        if prior_ids != ordered_ids:
            replace_items(selection, ordered_ids)
            changed_fields.append("items")
        if changed_fields:
            selection.save(update_fields=["statement_url", "updated_at"])
            logger.info(
                "Student %s amended selection %s for pack %s: %s",
                student.pk,
                selection.pk,
                pack.pk,
                ordered_ids,
            )
        return selection


@translate_database_errors
def attach_statement(student_id: int, pack_id: int, statement_url: str) -> Selection:
    """Store the uploaded statement reference on the student's pending selection."""
    with transaction.atomic():
        student = StudentProfile.objects.select_for_update().get(pk=student_id)
        pack = load_pack_for_student(pack_id, student)
        ensure_open(pack, server_now())
        selection = Selection.objects.select_for_update().filter(student=student, pack=pack).first()
        if selection is None:
            raise SelectionNotFound("请先提交选择，再上传申请表。")
        if selection.status != Selection.STATUS_PENDING:
            raise SelectionLocked()
        selection.statement_url = statement_url
        selection.save(update_fields=["statement_url", "updated_at"])
    logger.info("Student %s attached statement to selection %s", student_id, selection.pk)
    return selection


@translate_database_errors
def get_student_selection(student_id: int, pack_id: int) -> Selection | None:
    return (
        Selection.objects.filter(student_id=student_id, pack_id=pack_id)
        .prefetch_related("items__offering")
        .first()
    )
