"""Input forms for the JSON endpoints."""
from __future__ import annotations

from django import forms
from django.core.exceptions import ValidationError

from .models import ElectivePack, Selection


class IdListField(forms.Field):
    """A list of integer ids; empty input becomes an empty list so the ledger can reject it.

    Only whole integers or digit strings are accepted. Floats and booleans are
    refused instead of being truncated into some other offering's id.
    """

    widget = forms.MultipleHiddenInput

    def to_python(self, value):
        if value in self.empty_values:
            return []
        if not isinstance(value, (list, tuple)):
            value = [value]
        ids = []
        for item in value:
            if isinstance(item, int) and not isinstance(item, bool):
                ids.append(item)
            elif isinstance(item, str) and item.strip().isascii() and item.strip().isdigit():
                ids.append(int(item))
            else:
                raise ValidationError("请提供有效的编号列表。", code="invalid")
        return ids


class SelectionSubmitForm(forms.Form):
    offering_ids = IdListField(label="所选项目", required=False)
    statement_url = forms.URLField(label="申请表链接", max_length=500, required=False)


class StatementForm(forms.Form):
    statement_url = forms.URLField(label="申请表链接", max_length=500)


class SelectionDecisionForm(forms.Form):
    DECISIONS = [
        (Selection.STATUS_APPROVED, "通过"),
        (Selection.STATUS_REJECTED, "驳回"),
    ]

    decision = forms.ChoiceField(label="审批结果", choices=DECISIONS)
    note = forms.CharField(label="审核意见", required=False, widget=forms.Textarea)


class ReopenForm(forms.Form):
    note = forms.CharField(label="备注", required=False, widget=forms.Textarea)


class PackStatusForm(forms.Form):
    status = forms.ChoiceField(label="目标状态", choices=ElectivePack.STATUS_CHOICES)


class OfferingCapacityForm(forms.Form):
    max_capacity = forms.IntegerField(label="名额上限", min_value=1)


class SelectionExportForm(forms.Form):
    status = forms.ChoiceField(
        label="审批状态", choices=[("", "全部"), *Selection.STATUS_CHOICES], required=False
    )
    offering = forms.IntegerField(label="可选项", min_value=1, required=False)
