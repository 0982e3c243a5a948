"""Read side of packs and offerings for browsing.

Pack and offering metadata is cached per institution under
``(resource_type, institution_id)`` keys and dropped by the signal handlers in
:mod:`electives.signals` whenever staff change a pack or an offering.
Occupancy is merged in from a fresh count on every call. Admission decisions
never read from here.
"""
from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings
from django.core.cache import cache

from .capacity import occupancy_by_offering
from .deadline import is_open, server_now
from .exceptions import PackNotOpen, translate_database_errors
from .models import ElectiveCourse, ElectivePack, ExchangeUniversity

RESOURCE_PACKS = "packs"
RESOURCE_OFFERINGS = "offerings"
RESOURCE_TYPES = (RESOURCE_PACKS, RESOURCE_OFFERINGS)


@dataclass(frozen=True)
class OfferingWithOccupancy:
    id: int
    kind: str
    name: str
    description: str
    max_capacity: int
    occupancy: int
    read_only: bool
    details: dict

    @property
    def available(self) -> int:
        return max(self.max_capacity - self.occupancy, 0)

    @property
    def is_full(self) -> bool:
        return self.occupancy >= self.max_capacity

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "name": self.name,
            "description": self.description,
            "max_capacity": self.max_capacity,
            "occupancy": self.occupancy,
            "available": self.available,
            "is_full": self.is_full,
            "read_only": self.read_only,
            **self.details,
        }


def cache_key(resource_type: str, institution_id: int) -> str:
    return f"electives:{resource_type}:{institution_id}"


def invalidate_institution(institution_id: int) -> None:
    cache.delete_many([cache_key(resource_type, institution_id) for resource_type in RESOURCE_TYPES])


def _cached(resource_type: str, institution_id: int, loader):
    return cache.get_or_set(
        cache_key(resource_type, institution_id),
        loader,
        timeout=getattr(settings, "ELECTIVES_CATALOG_CACHE_TIMEOUT", 300),
    )


def _load_packs(institution_id: int) -> list[dict]:
    return [
        {
            "id": pack.pk,
            "name": pack.name,
            "kind": pack.kind,
            "status": pack.status,
            "max_selections": pack.max_selections,
            "deadline": pack.deadline,
            "statement_template_url": pack.statement_template_url,
        }
        for pack in ElectivePack.objects.filter(
            institution_id=institution_id, status=ElectivePack.STATUS_PUBLISHED
        ).order_by("deadline", "name")
    ]


def _load_offerings(institution_id: int) -> dict[int, list[dict]]:
    by_pack: dict[int, list[dict]] = {}
    courses = ElectiveCourse.objects.filter(pack__institution_id=institution_id, is_active=True)
    for course in courses.order_by("name"):
        by_pack.setdefault(course.pack_id, []).append(
            {
                "id": course.pk,
                "kind": course.kind,
                "name": course.name,
                "description": course.description,
                "max_capacity": course.max_capacity,
                "details": {"professor": course.professor, "credits": str(course.credits)},
            }
        )
    universities = ExchangeUniversity.objects.filter(pack__institution_id=institution_id, is_active=True)
    for university in universities.order_by("name"):
        by_pack.setdefault(university.pack_id, []).append(
            {
                "id": university.pk,
                "kind": university.kind,
                "name": university.name,
                "description": university.description,
                "max_capacity": university.max_capacity,
                "details": {
                    "country": university.country,
                    "city": university.city,
                    "language": university.language,
                },
            }
        )
    return by_pack


@translate_database_errors
def get_pack(pack_id: int, institution_id: int | None = None) -> ElectivePack:
    """Fetch a pack from the store; a pack of another institution is reported as not open."""
    queryset = ElectivePack.objects.filter(pk=pack_id)
    if institution_id is not None:
        queryset = queryset.filter(institution_id=institution_id)
    pack = queryset.first()
    if pack is None:
        raise PackNotOpen("选课包不存在或不属于您所在的院校。")
    return pack


@translate_database_errors
def list_packs(institution_id: int, kind: str | None = None) -> list[dict]:
    """Published packs of an institution, for browsing."""
    packs = _cached(RESOURCE_PACKS, institution_id, lambda: _load_packs(institution_id))
    if kind:
        packs = [pack for pack in packs if pack["kind"] == kind]
    return packs


@translate_database_errors
def list_offerings(pack_id: int, institution_id: int | None = None) -> list[OfferingWithOccupancy]:
    """Offerings of a pack with live occupancy and a read-only flag from the deadline gate."""
    pack = get_pack(pack_id, institution_id)
    offerings = _cached(RESOURCE_OFFERINGS, pack.institution_id, lambda: _load_offerings(pack.institution_id))
    rows = offerings.get(pack.pk, [])
    counts = occupancy_by_offering(row["id"] for row in rows)
    read_only = not is_open(pack, server_now())
    return [
        OfferingWithOccupancy(
            id=row["id"],
            kind=row["kind"],
            name=row["name"],
            description=row["description"],
            max_capacity=row["max_capacity"],
            occupancy=counts[row["id"]],
            read_only=read_only,
            details=row["details"],
        )
        for row in rows
    ]
