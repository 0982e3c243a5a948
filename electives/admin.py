"""Admin configuration for elective packs and selections."""
from django.contrib import admin, messages
from django.core.exceptions import PermissionDenied

from . import review
from .capacity import occupancy_by_offering
from .exceptions import SelectionError
from .models import (
    ElectiveCourse,
    ElectivePack,
    ExchangeUniversity,
    Selection,
    SelectionDecisionLog,
    SelectionItem,
)


class ElectiveCourseInline(admin.TabularInline):
    model = ElectiveCourse
    extra = 0
    fields = ("name", "professor", "credits", "max_capacity", "is_active")
    verbose_name = "选修课程"
    verbose_name_plural = "选修课程"


class ExchangeUniversityInline(admin.TabularInline):
    model = ExchangeUniversity
    extra = 0
    fields = ("name", "country", "city", "language", "max_capacity", "is_active")
    verbose_name = "交换院校"
    verbose_name_plural = "交换院校"


class SelectionItemInline(admin.TabularInline):
    model = SelectionItem
    extra = 0
    fields = ("position", "offering")
    readonly_fields = ("position", "offering")
    can_delete = False
    verbose_name = "已选项"
    verbose_name_plural = "已选项"

    def has_add_permission(self, request, obj=None):
        return False


class SelectionDecisionLogInline(admin.TabularInline):
    model = SelectionDecisionLog
    extra = 0
    fields = ("action", "actor", "note", "created_at")
    readonly_fields = ("action", "actor", "note", "created_at")
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(ElectivePack)
class ElectivePackAdmin(admin.ModelAdmin):
    list_display = ("name", "institution", "kind", "status", "max_selections", "deadline")
    list_filter = ("institution", "kind", "status")
    search_fields = ("name",)
    actions = ["publish_packs", "close_packs", "archive_packs"]

    def get_readonly_fields(self, request, obj=None):
        # 状态只能经由下方动作流转；创建后类型与院校不可更改
        if obj is None:
            return ("status",)
        return ("institution", "kind", "status")

    def get_inlines(self, request, obj):
        if obj is None:
            return []
        if obj.kind == ElectivePack.KIND_EXCHANGE:
            return [ExchangeUniversityInline]
        return [ElectiveCourseInline]

    def _transition(self, request, queryset, status):
        manager = getattr(request.user, "manager_profile", None)
        if manager is None:
            self.message_user(request, "仅项目管理员账号可以变更选课包状态。", level=messages.ERROR)
            return

        moved = 0
        for pack in queryset:
            try:
                review.transition_pack(pack.pk, status, manager.pk)
            except SelectionError as exc:
                self.message_user(request, f"{pack}: {exc.message}", level=messages.WARNING)
                continue
            except PermissionDenied as exc:
                self.message_user(request, f"{pack}: {exc}", level=messages.ERROR)
                continue
            moved += 1
        if moved:
            self.message_user(request, f"已更新 {moved} 个选课包的状态。", level=messages.SUCCESS)

    @admin.action(description="发布（或重新开放）所选选课包")
    def publish_packs(self, request, queryset):
        self._transition(request, queryset, ElectivePack.STATUS_PUBLISHED)

    @admin.action(description="关闭所选选课包")
    def close_packs(self, request, queryset):
        self._transition(request, queryset, ElectivePack.STATUS_CLOSED)

    @admin.action(description="归档所选选课包")
    def archive_packs(self, request, queryset):
        self._transition(request, queryset, ElectivePack.STATUS_ARCHIVED)


class _OfferingAdmin(admin.ModelAdmin):
    list_filter = ("pack__institution", "pack", "is_active")
    search_fields = ("name", "pack__name")

    @admin.display(description="已占用")
    def get_occupancy(self, obj):
        return occupancy_by_offering([obj.pk])[obj.pk]


@admin.register(ElectiveCourse)
class ElectiveCourseAdmin(_OfferingAdmin):
    list_display = ("name", "pack", "professor", "credits", "max_capacity", "get_occupancy", "is_active")


@admin.register(ExchangeUniversity)
class ExchangeUniversityAdmin(_OfferingAdmin):
    list_display = ("name", "pack", "country", "city", "max_capacity", "get_occupancy", "is_active")


@admin.register(Selection)
class SelectionAdmin(admin.ModelAdmin):
    list_display = ("student", "pack", "status", "created_at", "reviewed_by", "reviewed_at")
    list_filter = ("status", "pack__institution", "pack")
    search_fields = ("student__user__username", "student__student_number", "pack__name")
    readonly_fields = ("student", "pack", "status", "statement_url", "reviewed_by", "reviewed_at")
    exclude = ("offerings",)
    inlines = [SelectionItemInline, SelectionDecisionLogInline]
    actions = ["approve_selections", "reject_selections"]

    def has_add_permission(self, request):
        return False

    def _decide(self, request, queryset, decision):
        manager = getattr(request.user, "manager_profile", None)
        if manager is None:
            self.message_user(request, "仅项目管理员账号可以审核学生选择。", level=messages.ERROR)
            return

        decided = 0
        for selection in queryset:
            try:
                review.decide_selection(selection.pk, decision, manager.pk)
            except SelectionError as exc:
                self.message_user(request, f"{selection}: {exc.message}", level=messages.WARNING)
                continue
            except PermissionDenied as exc:
                self.message_user(request, f"{selection}: {exc}", level=messages.ERROR)
                continue
            decided += 1
        if decided:
            self.message_user(request, f"已处理 {decided} 条学生选择。", level=messages.SUCCESS)

    @admin.action(description="通过所选的学生选择")
    def approve_selections(self, request, queryset):
        self._decide(request, queryset, Selection.STATUS_APPROVED)

    @admin.action(description="驳回所选的学生选择")
    def reject_selections(self, request, queryset):
        self._decide(request, queryset, Selection.STATUS_REJECTED)


@admin.register(SelectionDecisionLog)
class SelectionDecisionLogAdmin(admin.ModelAdmin):
    list_display = ("selection", "action", "actor", "created_at")
    list_filter = ("action",)
    search_fields = ("selection__student__user__username",)
