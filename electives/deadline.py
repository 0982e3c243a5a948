"""Time-based gate that decides whether a pack accepts student writes."""
from __future__ import annotations

import datetime
import logging

from django.utils import timezone

from .exceptions import DeadlinePassed, PackNotOpen, translate_database_errors
from .models import ElectivePack

logger = logging.getLogger(__name__)


def server_now() -> datetime.datetime:
    """The only clock the workflow trusts; client-reported times are never used."""
    return timezone.now()


def is_open(pack: ElectivePack, now: datetime.datetime) -> bool:
    return pack.status == ElectivePack.STATUS_PUBLISHED and now < pack.deadline


def ensure_open(pack: ElectivePack, now: datetime.datetime) -> None:
    if pack.status != ElectivePack.STATUS_PUBLISHED:
        raise PackNotOpen()
    if now >= pack.deadline:
        raise DeadlinePassed(deadline=pack.deadline.isoformat())


@translate_database_errors
def close_expired_packs(now: datetime.datetime | None = None) -> int:
    """Move published packs whose deadline has passed to ``closed``."""
    now = now or server_now()
    expired = ElectivePack.objects.filter(status=ElectivePack.STATUS_PUBLISHED, deadline__lte=now)
    # 逐个保存以触发目录缓存失效信号
    closed = 0
    for pack in expired:
        pack.status = ElectivePack.STATUS_CLOSED
        pack.save(update_fields=["status", "updated_at"])
        logger.info("Closed pack %s after deadline %s", pack.pk, pack.deadline.isoformat())
        closed += 1
    return closed
