"""Tests for the admin change forms and bulk actions."""
import pytest
from django.contrib import admin
from django.contrib.messages import get_messages
from django.urls import reverse

from electives.ledger import submit_selection
from electives.models import ElectivePack, Selection, SelectionDecisionLog


@pytest.fixture
def staff_client(client):
    def _login(manager):
        manager.user.is_superuser = True
        manager.user.save(update_fields=["is_superuser"])
        client.force_login(manager.user)
        return client

    return _login


def run_action(client, model_name, action, pks):
    url = reverse(f"admin:electives_{model_name}_changelist")
    response = client.post(url, {"action": action, admin.helpers.ACTION_CHECKBOX_NAME: [str(pk) for pk in pks]})
    return response, [message.message for message in get_messages(response.wsgi_request)]


class TestElectivePackAdmin:
    def test_state_fields_are_read_only_on_change(self, rf, manager, make_pack):
        manager.user.is_superuser = True
        manager.user.save(update_fields=["is_superuser"])
        pack = make_pack(status=ElectivePack.STATUS_ARCHIVED)
        request = rf.get("/")
        request.user = manager.user
        model_admin = admin.site._registry[ElectivePack]

        form_class = model_admin.get_form(request, pack)

        assert {"status", "kind", "institution"}.isdisjoint(form_class.base_fields)
        assert "name" in form_class.base_fields

    def test_new_pack_starts_as_draft(self, rf, manager):
        manager.user.is_superuser = True
        manager.user.save(update_fields=["is_superuser"])
        request = rf.get("/")
        request.user = manager.user

        form_class = admin.site._registry[ElectivePack].get_form(request, None)

        assert "status" not in form_class.base_fields
        assert "kind" in form_class.base_fields

    def test_close_action_follows_transition_graph(self, staff_client, manager, make_pack):
        published = make_pack(name="published")
        draft = make_pack(name="draft", status=ElectivePack.STATUS_DRAFT)
        client = staff_client(manager)

        response, messages = run_action(client, "electivepack", "close_packs", [published.pk, draft.pk])

        assert response.status_code == 302
        published.refresh_from_db()
        draft.refresh_from_db()
        assert published.status == ElectivePack.STATUS_CLOSED
        assert draft.status == ElectivePack.STATUS_DRAFT
        assert any("draft" in message for message in messages)

    def test_archived_pack_cannot_be_republished(self, staff_client, manager, make_pack):
        archived = make_pack(status=ElectivePack.STATUS_ARCHIVED)
        client = staff_client(manager)

        run_action(client, "electivepack", "publish_packs", [archived.pk])

        archived.refresh_from_db()
        assert archived.status == ElectivePack.STATUS_ARCHIVED

    def test_reopen_and_archive_closed_pack(self, staff_client, manager, make_pack):
        reopened = make_pack(name="reopened", status=ElectivePack.STATUS_CLOSED)
        archived = make_pack(name="archived", status=ElectivePack.STATUS_CLOSED)
        client = staff_client(manager)

        run_action(client, "electivepack", "publish_packs", [reopened.pk])
        run_action(client, "electivepack", "archive_packs", [archived.pk])

        assert ElectivePack.objects.get(pk=reopened.pk).status == ElectivePack.STATUS_PUBLISHED
        assert ElectivePack.objects.get(pk=archived.pk).status == ElectivePack.STATUS_ARCHIVED


class TestSelectionAdmin:
    @pytest.fixture
    def selections(self, make_pack, make_course, make_student):
        pack = make_pack(max_selections=1)
        offering = make_course(pack, max_capacity=5)
        return [submit_selection(make_student(name).pk, pack.pk, [offering.pk]) for name in ("alice", "bob")]

    def test_approve_action(self, staff_client, manager, selections):
        client = staff_client(manager)

        run_action(client, "selection", "approve_selections", [selection.pk for selection in selections])

        assert set(Selection.objects.values_list("status", flat=True)) == {Selection.STATUS_APPROVED}
        assert SelectionDecisionLog.objects.filter(actor=manager, action="approved").count() == 2

    def test_conflicting_decision_is_reported(self, staff_client, manager, selections):
        client = staff_client(manager)
        run_action(client, "selection", "approve_selections", [selections[0].pk])

        _, messages = run_action(client, "selection", "reject_selections", [s.pk for s in selections])

        assert Selection.objects.get(pk=selections[0].pk).status == Selection.STATUS_APPROVED
        assert Selection.objects.get(pk=selections[1].pk).status == Selection.STATUS_REJECTED
        assert any("已处理 1 条" in message for message in messages)

    def test_staff_of_other_institution_is_refused(self, staff_client, make_manager, other_institution, selections):
        outsider = make_manager("eve", institution=other_institution)
        client = staff_client(outsider)

        _, messages = run_action(client, "selection", "reject_selections", [s.pk for s in selections])

        assert set(Selection.objects.values_list("status", flat=True)) == {Selection.STATUS_PENDING}
        assert not SelectionDecisionLog.objects.exists()
        assert any("其他院校" in message for message in messages)

    def test_account_without_manager_profile(self, client, django_user_model, selections):
        superuser = django_user_model.objects.create_superuser("root", "root@example.com", "pass12345!")
        client.force_login(superuser)

        _, messages = run_action(client, "selection", "approve_selections", [s.pk for s in selections])

        assert set(Selection.objects.values_list("status", flat=True)) == {Selection.STATUS_PENDING}
        assert any("仅项目管理员" in message for message in messages)
