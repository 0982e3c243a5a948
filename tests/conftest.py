import datetime

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone

from accounts.models import Institution, ManagerProfile, StudentProfile
from electives.models import ElectiveCourse, ElectivePack, ExchangeUniversity

User = get_user_model()


@pytest.fixture(autouse=True)
def clear_catalog_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def institution(db):
    return Institution.objects.create(name="示范大学", subdomain="demo")


@pytest.fixture
def other_institution(db):
    return Institution.objects.create(name="邻校", subdomain="other")


@pytest.fixture
def make_student(db, institution):
    def _make(username, institution=institution):
        user = User.objects.create_user(username=username, password="pass12345!")
        return StudentProfile.objects.create(user=user, institution=institution, student_number=username)

    return _make


@pytest.fixture
def make_manager(db, institution):
    def _make(username="carol", institution=institution):
        user = User.objects.create_user(username=username, password="pass12345!", is_staff=True)
        return ManagerProfile.objects.create(user=user, institution=institution)

    return _make


@pytest.fixture
def manager(make_manager):
    return make_manager()


@pytest.fixture
def make_pack(db, institution):
    def _make(**overrides):
        values = {
            "institution": institution,
            "name": "2025 秋季专业选修",
            "kind": ElectivePack.KIND_COURSE,
            "status": ElectivePack.STATUS_PUBLISHED,
            "max_selections": 2,
            "deadline": timezone.now() + datetime.timedelta(hours=1),
        }
        values.update(overrides)
        return ElectivePack.objects.create(**values)

    return _make


@pytest.fixture
def make_course(db):
    def _make(pack, name="机器学习导论", max_capacity=1, **extra):
        return ElectiveCourse.objects.create(pack=pack, name=name, max_capacity=max_capacity, **extra)

    return _make


@pytest.fixture
def make_university(db):
    def _make(pack, name="慕尼黑工业大学", max_capacity=1, **extra):
        return ExchangeUniversity.objects.create(pack=pack, name=name, max_capacity=max_capacity, **extra)

    return _make
