"""Tenants and the student/staff profiles bound to them."""
from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db import models

User = get_user_model()


class Institution(models.Model):
    name = models.CharField("院校名称", max_length=255)
    subdomain = models.SlugField("子域名", max_length=63, unique=True)
    is_active = models.BooleanField("启用", default=True)
    created_at = models.DateTimeField("创建时间", auto_now_add=True)

    class Meta:
        verbose_name = "院校"
        verbose_name_plural = "院校"
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.name} ({self.subdomain})"


class StudentProfile(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="student_profile", verbose_name="账号")
    institution = models.ForeignKey(
        Institution, on_delete=models.PROTECT, related_name="students", verbose_name="所属院校"
    )
    student_number = models.CharField("学号", max_length=32, blank=True)
    group_name = models.CharField("班级", max_length=100, blank=True)
    degree_program = models.CharField("专业", max_length=255, blank=True)

    class Meta:
        verbose_name = "学生"
        verbose_name_plural = "学生"
        ordering = ["student_number", "user__username"]
        constraints = [
            models.UniqueConstraint(
                fields=["institution", "student_number"],
                condition=~models.Q(student_number=""),
                name="studentprofile_unique_number_per_institution",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.user.get_full_name() or self.user.username} ({self.institution.subdomain})"


class ManagerProfile(models.Model):
    """Staff account that manages elective packs and reviews selections."""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="manager_profile", verbose_name="账号")
    institution = models.ForeignKey(
        Institution, on_delete=models.PROTECT, related_name="managers", verbose_name="所属院校"
    )
    title = models.CharField("职务", max_length=100, blank=True)

    class Meta:
        verbose_name = "项目管理员"
        verbose_name_plural = "项目管理员"
        ordering = ["user__username"]

    def __str__(self) -> str:  # pragma: no cover - human readable labels
        return f"{self.user.get_full_name() or self.user.username} ({self.institution.subdomain})"
