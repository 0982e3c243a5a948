"""Create a small demo institution with one course pack and one exchange pack."""
from __future__ import annotations

import datetime

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from accounts.models import Institution, ManagerProfile, StudentProfile
from electives.ledger import submit_selection
from electives.models import ElectiveCourse, ElectivePack, ExchangeUniversity, Selection

User = get_user_model()


class Command(BaseCommand):
    help = "Seed a compact dataset (one institution, two packs, a few students) for demo sessions"

    def add_arguments(self, parser):
        parser.add_argument("--subdomain", default="demo", help="Subdomain of the demo institution")
        parser.add_argument("--days", type=int, default=14, help="Days until the demo packs close")

    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Creating compact elective demo data..."))

        institution, _ = Institution.objects.get_or_create(
            subdomain=options["subdomain"], defaults={"name": "示范大学"}
        )
        deadline = timezone.now() + datetime.timedelta(days=options["days"])

        def ensure_user(username: str, first_name: str, **extra) -> User:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={"first_name": first_name, "email": f"{username}@example.com", **extra},
            )
            if created:
                user.set_password(settings.DEFAULT_INITIAL_PASSWORD)
                user.save(update_fields=["password"])
            return user

        admin_user, created_admin = User.objects.get_or_create(username="admin", defaults={"email": "admin@example.com"})
        if created_admin:
            admin_user.is_staff = True
            admin_user.is_superuser = True
            admin_user.set_password("admin123")
            admin_user.save()

        manager_user = ensure_user("carol", "Carol", is_staff=True)
        ManagerProfile.objects.get_or_create(user=manager_user, defaults={"institution": institution, "title": "教务老师"})

        students_data = [
            ("alice", "Alice", "2025001", "软件2301", "软件工程"),
            ("bob", "Bob", "2025002", "软件2301", "软件工程"),
            ("cindy", "Cindy", "2025003", "信管2301", "信息管理"),
            ("derek", "Derek", "2025004", "信管2301", "信息管理"),
        ]
        students: list[StudentProfile] = []
        for username, first_name, number, group, program in students_data:
            user = ensure_user(username, first_name)
            profile, _ = StudentProfile.objects.get_or_create(
                user=user,
                defaults={
                    "institution": institution,
                    "student_number": number,
                    "group_name": group,
                    "degree_program": program,
                },
            )
            students.append(profile)

        course_pack, _ = ElectivePack.objects.get_or_create(
            institution=institution,
            name="2025 秋季专业选修",
            defaults={
                "kind": ElectivePack.KIND_COURSE,
                "status": ElectivePack.STATUS_PUBLISHED,
                "max_selections": 2,
                "deadline": deadline,
            },
        )
        courses = [
            ("机器学习导论", "Carol", 3.0, 2),
            ("数据可视化", "Dave", 2.0, 30),
            ("分布式系统", "Erin", 3.0, 25),
        ]
        for name, professor, credits, capacity in courses:
            ElectiveCourse.objects.get_or_create(
                pack=course_pack,
                name=name,
                defaults={"professor": professor, "credits": credits, "max_capacity": capacity},
            )

        exchange_pack, _ = ElectivePack.objects.get_or_create(
            institution=institution,
            name="2026 春季交换项目",
            defaults={
                "kind": ElectivePack.KIND_EXCHANGE,
                "status": ElectivePack.STATUS_PUBLISHED,
                "max_selections": 1,
                "deadline": deadline,
            },
        )
        universities = [
            ("慕尼黑工业大学", "德国", "慕尼黑", "English", 3),
            ("新加坡国立大学", "新加坡", "新加坡", "English", 2),
        ]
        for name, country, city, language, capacity in universities:
            ExchangeUniversity.objects.get_or_create(
                pack=exchange_pack,
                name=name,
                defaults={"country": country, "city": city, "language": language, "max_capacity": capacity},
            )

        first_course = course_pack.offerings.order_by("pk").first()
        for student in students[:2]:
            if not Selection.objects.filter(student=student, pack=course_pack).exists():
                submit_selection(student.pk, course_pack.pk, [first_course.pk])

        self.stdout.write(self.style.SUCCESS("Elective demo data ready. Use admin/admin123 or carol to log in."))
