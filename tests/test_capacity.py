"""Tests for the capacity counter."""
import pytest
from django.db import OperationalError

from electives import capacity
from electives.exceptions import DataUnavailable
from electives.ledger import submit_selection
from electives.models import Selection


@pytest.fixture
def pack(make_pack):
    return make_pack(max_selections=2)


class TestOccupancy:
    def test_counts_pending_and_approved_but_not_rejected(self, pack, make_course, make_student):
        offering = make_course(pack, max_capacity=5)
        statuses = [Selection.STATUS_PENDING, Selection.STATUS_APPROVED, Selection.STATUS_REJECTED]
        for index, status in enumerate(statuses):
            student = make_student(f"s{index}")
            selection = submit_selection(student.pk, pack.pk, [offering.pk])
            Selection.objects.filter(pk=selection.pk).update(status=status)

        assert capacity.occupancy(offering.pk) == 2

    def test_unclaimed_offering_is_empty(self, pack, make_course):
        offering = make_course(pack)
        assert capacity.occupancy(offering.pk) == 0
        assert not capacity.is_full(offering)

    def test_is_full_at_capacity(self, pack, make_course, make_student):
        offering = make_course(pack, max_capacity=1)
        submit_selection(make_student("alice").pk, pack.pk, [offering.pk])
        assert capacity.is_full(offering)

    def test_exclude_selection(self, pack, make_course, make_student):
        offering = make_course(pack, max_capacity=3)
        selection = submit_selection(make_student("alice").pk, pack.pk, [offering.pk])
        submit_selection(make_student("bob").pk, pack.pk, [offering.pk])
        assert capacity.occupancy(offering.pk, exclude_selection_id=selection.pk) == 1


class TestOccupancyByOffering:
    def test_groups_counts_and_fills_zeros(self, pack, make_course, make_student):
        first = make_course(pack, name="A", max_capacity=3)
        second = make_course(pack, name="B", max_capacity=3)
        third = make_course(pack, name="C", max_capacity=3)
        submit_selection(make_student("alice").pk, pack.pk, [first.pk, second.pk])
        submit_selection(make_student("bob").pk, pack.pk, [first.pk])

        counts = capacity.occupancy_by_offering([first.pk, second.pk, third.pk])
        assert counts == {first.pk: 2, second.pk: 1, third.pk: 0}

    def test_empty_input(self, db):
        assert capacity.occupancy_by_offering([]) == {}


def test_store_failure_surfaces_as_data_unavailable(pack, make_course, monkeypatch):
    offering = make_course(pack)

    def broken():
        raise OperationalError("database is locked")

    monkeypatch.setattr(capacity, "_active_items", broken)
    with pytest.raises(DataUnavailable) as excinfo:
        capacity.is_full(offering)
    assert excinfo.value.retryable
