"""JSON endpoints for students and staff.

Views only resolve the caller's profile and validate input; every rule lives
in the ledger, review and catalog modules, which receive the student or staff
id explicitly.
"""
from __future__ import annotations

import csv
import json

from django.contrib.auth.mixins import LoginRequiredMixin
from django.core.exceptions import ObjectDoesNotExist, PermissionDenied
from django.http import HttpResponse, JsonResponse
from django.utils import timezone
from django.views import View

from . import catalog, ledger, review
from .deadline import is_open, server_now
from .exceptions import SelectionError
from .forms import (
    OfferingCapacityForm,
    PackStatusForm,
    ReopenForm,
    SelectionDecisionForm,
    SelectionExportForm,
    SelectionSubmitForm,
    StatementForm,
)


def serialize_pack(pack) -> dict:
    return {
        "id": pack.pk,
        "name": pack.name,
        "kind": pack.kind,
        "status": pack.status,
        "max_selections": pack.max_selections,
        "deadline": pack.deadline,
        "statement_template_url": pack.statement_template_url,
        "is_open": is_open(pack, server_now()),
    }


def serialize_selection(selection) -> dict:
    return {
        "id": selection.pk,
        "pack_id": selection.pack_id,
        "student_id": selection.student_id,
        "status": selection.status,
        "offering_ids": selection.chosen_offering_ids(),
        "statement_url": selection.statement_url,
        "reviewed_by": selection.reviewed_by_id,
        "reviewed_at": selection.reviewed_at,
        "created_at": selection.created_at,
        "updated_at": selection.updated_at,
    }


class MalformedBody(Exception):
    """The request declared a JSON body that does not decode to an object."""


class ApiView(LoginRequiredMixin, View):
    """Base view that turns workflow failures into JSON error bodies."""

    raise_exception = True

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except MalformedBody:
            return JsonResponse({"error": "invalid_input", "message": "请求体不是有效的 JSON 对象。"}, status=400)
        except SelectionError as exc:
            return JsonResponse(exc.as_dict(), status=exc.http_status)
        except PermissionDenied as exc:
            return JsonResponse({"error": "forbidden", "message": str(exc) or "无权访问。"}, status=403)
        except ObjectDoesNotExist:
            return JsonResponse({"error": "not_found", "message": "记录不存在。"}, status=404)

    def request_data(self):
        if self.request.content_type == "application/json":
            try:
                data = json.loads(self.request.body or b"{}")
            except ValueError:
                raise MalformedBody() from None
            if not isinstance(data, dict):
                raise MalformedBody()
            return data
        return self.request.POST

    def invalid(self, form):
        return JsonResponse({"error": "invalid_input", "fields": form.errors.get_json_data()}, status=400)

    def student_profile(self):
        if not hasattr(self.request.user, "student_profile"):
            raise PermissionDenied("仅学生可访问此接口。")
        return self.request.user.student_profile

    def manager_profile(self):
        if not hasattr(self.request.user, "manager_profile"):
            raise PermissionDenied("仅项目管理员可访问此接口。")
        return self.request.user.manager_profile

    def institution_id(self):
        user = self.request.user
        if hasattr(user, "student_profile"):
            return user.student_profile.institution_id
        if hasattr(user, "manager_profile"):
            return user.manager_profile.institution_id
        raise PermissionDenied("账号未绑定院校。")


class PackListView(ApiView):
    def get(self, request):
        packs = catalog.list_packs(self.institution_id(), kind=request.GET.get("kind") or None)
        return JsonResponse({"packs": packs})


class PackDetailView(ApiView):
    def get(self, request, pack_id):
        pack = catalog.get_pack(pack_id, self.institution_id())
        return JsonResponse(serialize_pack(pack))


class OfferingListView(ApiView):
    def get(self, request, pack_id):
        offerings = catalog.list_offerings(pack_id, self.institution_id())
        return JsonResponse({"offerings": [offering.as_dict() for offering in offerings]})


class StudentSelectionView(ApiView):
    def get(self, request, pack_id):
        profile = self.student_profile()
        selection = ledger.get_student_selection(profile.pk, pack_id)
        return JsonResponse({"selection": serialize_selection(selection) if selection else None})

    def post(self, request, pack_id):
        profile = self.student_profile()
        form = SelectionSubmitForm(self.request_data())
        if not form.is_valid():
            return self.invalid(form)
        selection = ledger.submit_selection(
            profile.pk,
            pack_id,
            form.cleaned_data["offering_ids"],
            statement_url=form.cleaned_data["statement_url"] or None,
        )
        return JsonResponse({"selection": serialize_selection(selection)})


class StatementView(ApiView):
    def post(self, request, pack_id):
        profile = self.student_profile()
        form = StatementForm(self.request_data())
        if not form.is_valid():
            return self.invalid(form)
        selection = ledger.attach_statement(profile.pk, pack_id, form.cleaned_data["statement_url"])
        return JsonResponse({"selection": serialize_selection(selection)})


class PackSelectionsView(ApiView):
    def get(self, request, pack_id):
        manager = self.manager_profile()
        selections = review.list_pack_selections(pack_id, manager.pk, status=request.GET.get("status") or None)
        return JsonResponse({"selections": [serialize_selection(selection) for selection in selections]})


class PackStatusView(ApiView):
    def post(self, request, pack_id):
        manager = self.manager_profile()
        form = PackStatusForm(self.request_data())
        if not form.is_valid():
            return self.invalid(form)
        pack = review.transition_pack(pack_id, form.cleaned_data["status"], manager.pk)
        return JsonResponse(serialize_pack(pack))


class SelectionDecisionView(ApiView):
    def post(self, request, selection_id):
        manager = self.manager_profile()
        form = SelectionDecisionForm(self.request_data())
        if not form.is_valid():
            return self.invalid(form)
        selection = review.decide_selection(
            selection_id,
            form.cleaned_data["decision"],
            manager.pk,
            note=form.cleaned_data.get("note", ""),
        )
        return JsonResponse({"selection": serialize_selection(selection)})


class SelectionReopenView(ApiView):
    def post(self, request, selection_id):
        manager = self.manager_profile()
        form = ReopenForm(self.request_data())
        if not form.is_valid():
            return self.invalid(form)
        selection = review.reopen_selection(selection_id, manager.pk, note=form.cleaned_data.get("note", ""))
        return JsonResponse({"selection": serialize_selection(selection)})


class OfferingCapacityView(ApiView):
    def post(self, request, offering_id):
        manager = self.manager_profile()
        form = OfferingCapacityForm(self.request_data())
        if not form.is_valid():
            return self.invalid(form)
        offering = review.update_offering_capacity(offering_id, form.cleaned_data["max_capacity"], manager.pk)
        return JsonResponse({"id": offering.pk, "max_capacity": offering.max_capacity})


class PackSelectionsExportView(ApiView):
    """CSV download of a pack's selections, optionally narrowed to one offering."""

    def get(self, request, pack_id):
        manager = self.manager_profile()
        form = SelectionExportForm(request.GET)
        if not form.is_valid():
            return self.invalid(form)
        selections = review.list_pack_selections(
            pack_id,
            manager.pk,
            status=form.cleaned_data["status"] or None,
            offering_id=form.cleaned_data["offering"],
        )

        response = HttpResponse(content_type="text/csv")
        filename = f"pack_{pack_id}_selections.csv"
        if form.cleaned_data["offering"]:
            filename = f"pack_{pack_id}_offering_{form.cleaned_data['offering']}_selections.csv"
        response["Content-Disposition"] = f"attachment; filename={filename}"

        writer = csv.writer(response)
        writer.writerow(["学号", "姓名", "班级", "专业", "所选项目", "审批状态", "申请表", "提交时间", "审核时间"])
        for selection in selections:
            student = selection.student
            writer.writerow(
                [
                    student.student_number,
                    student.user.get_full_name() or student.user.username,
                    student.group_name,
                    student.degree_program,
                    "; ".join(item.offering.name for item in selection.items.all()),
                    selection.get_status_display(),
                    selection.statement_url,
                    timezone.localtime(selection.created_at).strftime("%Y-%m-%d %H:%M"),
                    timezone.localtime(selection.reviewed_at).strftime("%Y-%m-%d %H:%M")
                    if selection.reviewed_at
                    else "",
                ]
            )
        return response
