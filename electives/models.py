"""Django models for elective packs, their offerings and student selections."""
from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounts.models import Institution, ManagerProfile, StudentProfile


class ElectivePack(models.Model):
    KIND_COURSE = "course"
    KIND_EXCHANGE = "exchange"
    KIND_CHOICES = [
        (KIND_COURSE, "课程选修"),
        (KIND_EXCHANGE, "交换项目"),
    ]

    STATUS_DRAFT = "draft"
    STATUS_PUBLISHED = "published"
    STATUS_CLOSED = "closed"
    STATUS_ARCHIVED = "archived"
    STATUS_CHOICES = [
        (STATUS_DRAFT, "草稿"),
        (STATUS_PUBLISHED, "已发布"),
        (STATUS_CLOSED, "已截止"),
        (STATUS_ARCHIVED, "已归档"),
    ]

    institution = models.ForeignKey(
        Institution, on_delete=models.PROTECT, related_name="elective_packs", verbose_name="所属院校"
    )
    name = models.CharField("名称", max_length=255)
    kind = models.CharField("类型", max_length=16, choices=KIND_CHOICES)
    status = models.CharField("状态", max_length=16, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    max_selections = models.PositiveSmallIntegerField("每人最多可选", default=1)
    deadline = models.DateTimeField("截止时间")
    statement_template_url = models.URLField("申请表模板", max_length=500, blank=True)
    created_at = models.DateTimeField("创建时间", auto_now_add=True)
    updated_at = models.DateTimeField("更新时间", auto_now=True)

    class Meta:
        verbose_name = "选课包"
        verbose_name_plural = "选课包"
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["institution", "status"], name="pack_institution_status_idx")]
        constraints = [
            models.CheckConstraint(condition=Q(max_selections__gte=1), name="pack_max_selections_positive"),
        ]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.name} ({self.get_status_display()})"


class Offering(models.Model):
    """A capacity-bearing choice inside a pack: a course or a partner university."""

    offering_kind = ""

    pack = models.ForeignKey(ElectivePack, on_delete=models.CASCADE, related_name="offerings", verbose_name="选课包")
    kind = models.CharField("类型", max_length=16, choices=ElectivePack.KIND_CHOICES, editable=False)
    name = models.CharField("名称", max_length=255)
    description = models.TextField("简介", blank=True)
    max_capacity = models.PositiveIntegerField("名额上限")
    is_active = models.BooleanField("开放选择", default=True)
    created_at = models.DateTimeField("创建时间", auto_now_add=True)

    class Meta:
        verbose_name = "可选项"
        verbose_name_plural = "可选项"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(condition=Q(max_capacity__gte=1), name="offering_capacity_at_least_one"),
        ]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.name} [{self.max_capacity}]"

    def clean(self):
        super().clean()
        if self.pack_id and self.offering_kind and self.pack.kind != self.offering_kind:
            raise ValidationError("可选项类型与选课包类型不一致。")
        if self.pk and self.max_capacity is not None:
            from .capacity import occupancy

            taken = occupancy(self.pk)
            if self.max_capacity < taken:
                raise ValidationError(
                    {"max_capacity": f"当前已有 {taken} 人占用名额，不能将上限调低至 {self.max_capacity}。"}
                )

    def save(self, *args, **kwargs):
        if self.offering_kind:
            self.kind = self.offering_kind
        super().save(*args, **kwargs)


class ElectiveCourse(Offering):
    offering_kind = ElectivePack.KIND_COURSE

    professor = models.CharField("授课教师", max_length=255, blank=True)
    credits = models.DecimalField("学分", max_digits=4, decimal_places=1, default=0)

    class Meta:
        verbose_name = "选修课程"
        verbose_name_plural = "选修课程"


class ExchangeUniversity(Offering):
    offering_kind = ElectivePack.KIND_EXCHANGE

    country = models.CharField("国家/地区", max_length=100, blank=True)
    city = models.CharField("城市", max_length=100, blank=True)
    language = models.CharField("授课语言", max_length=50, blank=True)

    class Meta:
        verbose_name = "交换院校"
        verbose_name_plural = "交换院校"


class Selection(models.Model):
    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"
    STATUS_CHOICES = [
        (STATUS_PENDING, "待审批"),
        (STATUS_APPROVED, "已通过"),
        (STATUS_REJECTED, "已驳回"),
    ]
    # 计入名额占用的状态
    ACTIVE_STATUSES = (STATUS_PENDING, STATUS_APPROVED)

    student = models.ForeignKey(StudentProfile, on_delete=models.CASCADE, related_name="selections", verbose_name="学生")
    pack = models.ForeignKey(ElectivePack, on_delete=models.CASCADE, related_name="selections", verbose_name="选课包")
    offerings = models.ManyToManyField(
        Offering, through="SelectionItem", related_name="selections", verbose_name="已选项"
    )
    status = models.CharField("审批状态", max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    statement_url = models.URLField("申请表", max_length=500, blank=True)
    reviewed_by = models.ForeignKey(
        ManagerProfile,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviewed_selections",
        verbose_name="审核人",
    )
    reviewed_at = models.DateTimeField("审核时间", null=True, blank=True)
    created_at = models.DateTimeField("提交时间", auto_now_add=True)
    updated_at = models.DateTimeField("更新时间", auto_now=True)

    class Meta:
        verbose_name = "学生选择"
        verbose_name_plural = "学生选择"
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["pack", "status"], name="selection_pack_status_idx")]
        constraints = [
            models.UniqueConstraint(fields=["student", "pack"], name="selection_one_per_student_pack"),
        ]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.student} -> {self.pack} ({self.get_status_display()})"

    @property
    def is_active(self) -> bool:
        return self.status in self.ACTIVE_STATUSES

    def chosen_offering_ids(self) -> list[int]:
        return list(self.items.order_by("position").values_list("offering_id", flat=True))


class SelectionItem(models.Model):
    selection = models.ForeignKey(Selection, on_delete=models.CASCADE, related_name="items", verbose_name="学生选择")
    offering = models.ForeignKey(Offering, on_delete=models.RESTRICT, related_name="selection_items", verbose_name="可选项")
    position = models.PositiveSmallIntegerField("志愿顺序", default=0)

    class Meta:
        verbose_name = "已选项"
        verbose_name_plural = "已选项"
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(fields=["selection", "offering"], name="selectionitem_unique_offering"),
        ]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.selection_id}#{self.position} -> {self.offering_id}"


class SelectionDecisionLog(models.Model):
    ACTION_APPROVED = "approved"
    ACTION_REJECTED = "rejected"
    ACTION_REOPENED = "reopened"
    ACTION_CHOICES = [
        (ACTION_APPROVED, "通过"),
        (ACTION_REJECTED, "驳回"),
        (ACTION_REOPENED, "重新开放"),
    ]

    selection = models.ForeignKey(Selection, on_delete=models.CASCADE, related_name="logs", verbose_name="学生选择")
    action = models.CharField("操作", max_length=16, choices=ACTION_CHOICES)
    actor = models.ForeignKey(
        ManagerProfile,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="decision_logs",
        verbose_name="执行人",
    )
    note = models.TextField("审核意见", blank=True)
    created_at = models.DateTimeField("时间", auto_now_add=True)

    class Meta:
        verbose_name = "审批日志"
        verbose_name_plural = "审批日志"
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.selection} -> {self.get_action_display()}"
