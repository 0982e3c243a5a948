"""Admin configuration for institutions and profiles."""
from django.contrib import admin

from .models import Institution, ManagerProfile, StudentProfile


class StudentProfileInline(admin.TabularInline):
    model = StudentProfile
    extra = 0
    fields = ("user", "student_number", "group_name", "degree_program")
    verbose_name = "学生"
    verbose_name_plural = "学生"


@admin.register(Institution)
class InstitutionAdmin(admin.ModelAdmin):
    list_display = ("name", "subdomain", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name", "subdomain")
    inlines = [StudentProfileInline]


@admin.register(StudentProfile)
class StudentProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "student_number", "institution", "group_name", "degree_program")
    list_filter = ("institution",)
    search_fields = ("user__username", "student_number", "group_name", "degree_program")


@admin.register(ManagerProfile)
class ManagerProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "institution", "title")
    list_filter = ("institution",)
    search_fields = ("user__username", "title")
