"""Staff-side state machine for selections and packs."""
from __future__ import annotations

import logging

from django.core.exceptions import PermissionDenied
from django.db import transaction
from django.utils import timezone

from accounts.models import ManagerProfile, StudentProfile

from .capacity import occupancy
from .exceptions import (
    CapacityBelowOccupancy,
    ConflictingDecision,
    PackTransitionInvalid,
    translate_database_errors,
)
from .ledger import ensure_capacity, lock_offerings
from .models import ElectivePack, Offering, Selection, SelectionDecisionLog

logger = logging.getLogger(__name__)

DECISIONS = (Selection.STATUS_APPROVED, Selection.STATUS_REJECTED)

PACK_TRANSITIONS = {
    ElectivePack.STATUS_DRAFT: {ElectivePack.STATUS_PUBLISHED},
    ElectivePack.STATUS_PUBLISHED: {ElectivePack.STATUS_CLOSED},
    ElectivePack.STATUS_CLOSED: {ElectivePack.STATUS_PUBLISHED, ElectivePack.STATUS_ARCHIVED},
    ElectivePack.STATUS_ARCHIVED: set(),
}


def _staff(staff_id: int) -> ManagerProfile:
    return ManagerProfile.objects.get(pk=staff_id)


def _ensure_same_institution(staff: ManagerProfile, pack: ElectivePack) -> None:
    if staff.institution_id != pack.institution_id:
        raise PermissionDenied("无权管理其他院校的选课包。")


@translate_database_errors
def decide_selection(selection_id: int, decision: str, staff_id: int, note: str = "") -> Selection:
    """Approve or reject a pending selection.

    Approval does not recheck capacity: a pending selection already holds its
    seats. Rejection frees them at commit. Repeating the same decision is a
    no-op; a different decision on a reviewed selection raises
    ConflictingDecision.
    """
    if decision not in DECISIONS:
        raise ValueError(f"decision must be one of {DECISIONS}, got {decision!r}")

    staff = _staff(staff_id)
    with transaction.atomic():
        selection = Selection.objects.select_for_update().select_related("pack").get(pk=selection_id)
        _ensure_same_institution(staff, selection.pack)

        if selection.status == decision:
            return selection
        if selection.status != Selection.STATUS_PENDING:
            raise ConflictingDecision(
                f"该选择已{selection.get_status_display()}，不能再改为{dict(Selection.STATUS_CHOICES)[decision]}。",
                current_status=selection.status,
            )

        selection.status = decision
        selection.reviewed_by = staff
        selection.reviewed_at = timezone.now()
        selection.save(update_fields=["status", "reviewed_by", "reviewed_at", "updated_at"])
        SelectionDecisionLog.objects.create(selection=selection, action=decision, actor=staff, note=note)

    logger.info("Staff %s %s selection %s", staff.pk, decision, selection.pk)
    return selection


@translate_database_errors
def reopen_selection(selection_id: int, staff_id: int, note: str = "") -> Selection:
    """Return a reviewed selection to ``pending``.

    A rejected selection holds no seats, so reopening it re-claims them under
    the same locks as a student submission and can fail with OfferingFull.
    """
    staff = _staff(staff_id)
    with transaction.atomic():
        unlocked = Selection.objects.select_related("pack").get(pk=selection_id)
        _ensure_same_institution(staff, unlocked.pack)
        StudentProfile.objects.select_for_update().get(pk=unlocked.student_id)
        offerings = lock_offerings(unlocked.pack, unlocked.chosen_offering_ids())
        selection = Selection.objects.select_for_update().get(pk=selection_id)

        if selection.status == Selection.STATUS_PENDING:
            return selection
        if selection.status == Selection.STATUS_REJECTED:
            ensure_capacity(
                [offerings[offering_id] for offering_id in selection.chosen_offering_ids()],
                exclude_selection_id=selection.pk,
            )

        selection.status = Selection.STATUS_PENDING
        selection.reviewed_by = None
        selection.reviewed_at = None
        selection.save(update_fields=["status", "reviewed_by", "reviewed_at", "updated_at"])
        SelectionDecisionLog.objects.create(
            selection=selection, action=SelectionDecisionLog.ACTION_REOPENED, actor=staff, note=note
        )

    logger.info("Staff %s reopened selection %s", staff.pk, selection.pk)
    return selection


@translate_database_errors
def transition_pack(pack_id: int, status: str, staff_id: int) -> ElectivePack:
    staff = _staff(staff_id)
    with transaction.atomic():
        pack = ElectivePack.objects.select_for_update().get(pk=pack_id)
        _ensure_same_institution(staff, pack)
        if pack.status == status:
            return pack
        if status not in PACK_TRANSITIONS.get(pack.status, set()):
            raise PackTransitionInvalid(
                f"选课包不能从“{pack.get_status_display()}”变更为“{status}”。",
                current_status=pack.status,
                requested_status=status,
            )
        previous = pack.status
        pack.status = status
        pack.save(update_fields=["status", "updated_at"])

    logger.info("Staff %s moved pack %s from %s to %s", staff.pk, pack.pk, previous, status)
    return pack


@translate_database_errors
def update_offering_capacity(offering_id: int, max_capacity: int, staff_id: int) -> Offering:
    """Change an offering's capacity; lowering it below current occupancy is refused."""
    if max_capacity < 1:
        raise ValueError("max_capacity must be at least 1")

    staff = _staff(staff_id)
    with transaction.atomic():
        offering = Offering.objects.select_for_update().select_related("pack").get(pk=offering_id)
        _ensure_same_institution(staff, offering.pack)
        taken = occupancy(offering.pk)
        if max_capacity < taken:
            raise CapacityBelowOccupancy(
                f"当前已有 {taken} 人占用名额，请先处理超出的选择。",
                occupancy=taken,
                requested_capacity=max_capacity,
            )
        offering.max_capacity = max_capacity
        offering.save(update_fields=["max_capacity"])

    logger.info("Staff %s set capacity of offering %s to %s", staff.pk, offering.pk, max_capacity)
    return offering


@translate_database_errors
def list_pack_selections(
    pack_id: int, staff_id: int, status: str | None = None, offering_id: int | None = None
) -> list[Selection]:
    staff = _staff(staff_id)
    pack = ElectivePack.objects.get(pk=pack_id)
    _ensure_same_institution(staff, pack)
    queryset = (
        Selection.objects.filter(pack=pack)
        .select_related("student__user", "reviewed_by__user")
        .prefetch_related("items__offering")
        .order_by("-created_at")
    )
    if status:
        queryset = queryset.filter(status=status)
    if offering_id is not None:
        queryset = queryset.filter(items__offering_id=offering_id)
    return list(queryset)
