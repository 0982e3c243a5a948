"""Tests for the demo data management command."""
from io import StringIO

from django.core.management import call_command

from accounts.models import Institution, ManagerProfile, StudentProfile
from electives.capacity import occupancy
from electives.models import ElectivePack, Selection


def test_bootstrap_electives_is_repeatable(db):
    call_command("bootstrap_electives", stdout=StringIO())
    call_command("bootstrap_electives", stdout=StringIO())

    institution = Institution.objects.get(subdomain="demo")
    assert StudentProfile.objects.filter(institution=institution).count() == 4
    assert ManagerProfile.objects.filter(institution=institution).count() == 1
    assert ElectivePack.objects.filter(institution=institution, status=ElectivePack.STATUS_PUBLISHED).count() == 2

    course_pack = ElectivePack.objects.get(institution=institution, kind=ElectivePack.KIND_COURSE)
    first_course = course_pack.offerings.order_by("pk").first()
    assert Selection.objects.filter(pack=course_pack).count() == 2
    assert occupancy(first_course.pk) == first_course.max_capacity
