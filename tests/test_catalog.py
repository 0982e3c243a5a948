"""Tests for the offering catalog and its per-institution cache."""
import datetime

import pytest
from django.core.cache import cache
from django.db import transaction
from django.utils import timezone

from electives import catalog
from electives.exceptions import PackNotOpen
from electives.ledger import submit_selection
from electives.models import ElectivePack


@pytest.fixture
def pack(make_pack):
    return make_pack()


class TestListOfferings:
    def test_offerings_carry_live_occupancy(self, pack, make_course, make_student):
        full = make_course(pack, name="A", max_capacity=1, professor="Carol", credits=3)
        roomy = make_course(pack, name="B", max_capacity=4)
        submit_selection(make_student("alice").pk, pack.pk, [full.pk, roomy.pk])

        listing = {row.id: row for row in catalog.list_offerings(pack.pk)}

        assert listing[full.pk].occupancy == 1
        assert listing[full.pk].is_full
        assert listing[full.pk].details == {"professor": "Carol", "credits": "3.0"}
        assert listing[roomy.pk].available == 3
        assert not listing[roomy.pk].read_only

    def test_occupancy_is_not_served_from_cache(self, pack, make_course, make_student):
        offering = make_course(pack, max_capacity=2)
        catalog.list_offerings(pack.pk)

        submit_selection(make_student("alice").pk, pack.pk, [offering.pk])

        assert catalog.list_offerings(pack.pk)[0].occupancy == 1

    def test_closed_pack_is_read_only(self, make_pack, make_course):
        pack = make_pack(deadline=timezone.now() - datetime.timedelta(minutes=1))
        make_course(pack)
        assert all(row.read_only for row in catalog.list_offerings(pack.pk))

    def test_inactive_offerings_are_hidden(self, pack, make_course):
        make_course(pack, name="visible")
        make_course(pack, name="hidden", is_active=False)
        assert [row.name for row in catalog.list_offerings(pack.pk)] == ["visible"]

    def test_exchange_offerings(self, make_pack, make_university):
        pack = make_pack(kind=ElectivePack.KIND_EXCHANGE)
        make_university(pack, country="德国", city="慕尼黑", language="English")
        row = catalog.list_offerings(pack.pk)[0].as_dict()
        assert row["kind"] == ElectivePack.KIND_EXCHANGE
        assert row["country"] == "德国"

    def test_other_institution_cannot_browse(self, pack, other_institution):
        with pytest.raises(PackNotOpen):
            catalog.list_offerings(pack.pk, institution_id=other_institution.pk)


class TestCatalogCache:
    def test_metadata_is_cached_per_institution(self, pack, make_course, institution):
        make_course(pack)
        catalog.list_offerings(pack.pk)
        assert cache.get(catalog.cache_key(catalog.RESOURCE_OFFERINGS, institution.pk)) is not None

    def test_offering_change_invalidates_cache(
        self, pack, make_course, institution, django_capture_on_commit_callbacks
    ):
        offering = make_course(pack, name="old name")
        catalog.list_offerings(pack.pk)

        with django_capture_on_commit_callbacks(execute=True):
            offering.name = "new name"
            offering.save()

        assert cache.get(catalog.cache_key(catalog.RESOURCE_OFFERINGS, institution.pk)) is None
        assert catalog.list_offerings(pack.pk)[0].name == "new name"

    def test_new_offering_appears_after_invalidation(self, pack, make_course, django_capture_on_commit_callbacks):
        make_course(pack, name="A")
        assert len(catalog.list_offerings(pack.pk)) == 1
        with django_capture_on_commit_callbacks(execute=True):
            make_course(pack, name="B")
        assert len(catalog.list_offerings(pack.pk)) == 2

    def test_pack_status_change_invalidates_pack_list(
        self, make_pack, institution, django_capture_on_commit_callbacks
    ):
        draft = make_pack(status=ElectivePack.STATUS_DRAFT)
        assert catalog.list_packs(institution.pk) == []

        with django_capture_on_commit_callbacks(execute=True):
            draft.status = ElectivePack.STATUS_PUBLISHED
            draft.save()

        assert [pack["id"] for pack in catalog.list_packs(institution.pk)] == [draft.pk]

    def test_invalidation_waits_for_commit(self, pack, institution, django_capture_on_commit_callbacks):
        """A reader that refills the cache before the commit must not outlive it."""
        catalog.list_packs(institution.pk)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with transaction.atomic():
                pack.status = ElectivePack.STATUS_CLOSED
                pack.save()
                assert cache.get(catalog.cache_key(catalog.RESOURCE_PACKS, institution.pk)) is not None
                # a concurrent reader still sees the committed published pack
                cache.set(
                    catalog.cache_key(catalog.RESOURCE_PACKS, institution.pk),
                    [{"id": pack.pk, "kind": pack.kind, "status": ElectivePack.STATUS_PUBLISHED}],
                )

        assert callbacks
        assert catalog.list_packs(institution.pk) == []


class TestListPacks:
    def test_only_published_packs_of_the_institution(self, make_pack, institution, other_institution):
        published = make_pack(name="published")
        make_pack(name="draft", status=ElectivePack.STATUS_DRAFT)
        make_pack(name="foreign", institution=other_institution)

        assert [pack["id"] for pack in catalog.list_packs(institution.pk)] == [published.pk]

    def test_filter_by_kind(self, make_pack, institution):
        make_pack(name="courses")
        exchange = make_pack(name="exchange", kind=ElectivePack.KIND_EXCHANGE)
        assert [pack["id"] for pack in catalog.list_packs(institution.pk, kind="exchange")] == [exchange.pk]


def test_get_pack_scopes_by_institution(pack, institution, other_institution):
    assert catalog.get_pack(pack.pk, institution.pk) == pack
    with pytest.raises(PackNotOpen):
        catalog.get_pack(pack.pk, other_institution.pk)
