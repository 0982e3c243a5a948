"""Typed failures of the selection workflow.

Every failure carries a stable ``code`` so HTTP callers can tell the kinds
apart and render an actionable message. Only :class:`DataUnavailable` is worth
retrying; all other kinds need corrected input or a later decision window.
"""
from __future__ import annotations

import functools
import logging

from django.db import InterfaceError, OperationalError

logger = logging.getLogger(__name__)


class SelectionError(Exception):
    code = "selection_error"
    http_status = 400
    retryable = False
    default_message = "选课操作失败。"

    def __init__(self, message: str | None = None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def as_dict(self) -> dict:
        payload = {"error": self.code, "message": self.message, "retryable": self.retryable}
        payload.update(self.details)
        return payload


class PackNotOpen(SelectionError):
    code = "pack_not_open"
    http_status = 409
    default_message = "该选课包当前未开放选择。"


class DeadlinePassed(SelectionError):
    code = "deadline_passed"
    http_status = 409
    default_message = "选课截止时间已过。"


class SelectionCountInvalid(SelectionError):
    code = "selection_count_invalid"
    default_message = "所选数量不符合要求。"


class UnknownOffering(SelectionError):
    code = "unknown_offering"
    default_message = "所选项目不属于该选课包。"


class OfferingFull(SelectionError):
    code = "offering_full"
    http_status = 409
    default_message = "该项目名额已满。"

    def __init__(self, offering, message: str | None = None):
        self.offering = offering
        super().__init__(
            message or f"“{offering.name}”名额已满，暂无法选择。",
            offering_id=offering.pk,
            offering_name=offering.name,
        )


class SelectionLocked(SelectionError):
    code = "selection_locked"
    http_status = 409
    default_message = "选择已审核，无法再修改。"


class SelectionNotFound(SelectionError):
    code = "selection_not_found"
    http_status = 404
    default_message = "尚未提交选择。"


class ConflictingDecision(SelectionError):
    code = "conflicting_decision"
    http_status = 409
    default_message = "该选择已有不同的审核结果。"


class PackTransitionInvalid(SelectionError):
    code = "pack_transition_invalid"
    http_status = 409
    default_message = "选课包状态不允许此变更。"


class CapacityBelowOccupancy(SelectionError):
    code = "capacity_below_occupancy"
    http_status = 409
    default_message = "名额上限不能低于当前占用人数。"


class DataUnavailable(SelectionError):
    code = "data_unavailable"
    http_status = 503
    retryable = True
    default_message = "数据服务暂时不可用，请稍后重试。"


def translate_database_errors(func):
    """Re-raise connectivity/locking failures of the store as DataUnavailable."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as exc:
            logger.error("Store unavailable in %s: %s", func.__qualname__, exc)
            raise DataUnavailable() from exc

    return wrapper
