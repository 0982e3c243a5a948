import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ElectivePack",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, verbose_name="名称")),
                (
                    "kind",
                    models.CharField(
                        choices=[("course", "课程选修"), ("exchange", "交换项目")],
                        max_length=16,
                        verbose_name="类型",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "草稿"),
                            ("published", "已发布"),
                            ("closed", "已截止"),
                            ("archived", "已归档"),
                        ],
                        default="draft",
                        max_length=16,
                        verbose_name="状态",
                    ),
                ),
                ("max_selections", models.PositiveSmallIntegerField(default=1, verbose_name="每人最多可选")),
                ("deadline", models.DateTimeField(verbose_name="截止时间")),
                ("statement_template_url", models.URLField(blank=True, max_length=500, verbose_name="申请表模板")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="创建时间")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="更新时间")),
                (
                    "institution",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="elective_packs",
                        to="accounts.institution",
                        verbose_name="所属院校",
                    ),
                ),
            ],
            options={
                "verbose_name": "选课包",
                "verbose_name_plural": "选课包",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["institution", "status"], name="pack_institution_status_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("max_selections__gte", 1)), name="pack_max_selections_positive"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Offering",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(
                        choices=[("course", "课程选修"), ("exchange", "交换项目")],
                        editable=False,
                        max_length=16,
                        verbose_name="类型",
                    ),
                ),
                ("name", models.CharField(max_length=255, verbose_name="名称")),
                ("description", models.TextField(blank=True, verbose_name="简介")),
                ("max_capacity", models.PositiveIntegerField(verbose_name="名额上限")),
                ("is_active", models.BooleanField(default=True, verbose_name="开放选择")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="创建时间")),
                (
                    "pack",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="offerings",
                        to="electives.electivepack",
                        verbose_name="选课包",
                    ),
                ),
            ],
            options={
                "verbose_name": "可选项",
                "verbose_name_plural": "可选项",
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("max_capacity__gte", 1)), name="offering_capacity_at_least_one"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ElectiveCourse",
            fields=[
                (
                    "offering_ptr",
                    models.OneToOneField(
                        auto_created=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        parent_link=True,
                        primary_key=True,
                        serialize=False,
                        to="electives.offering",
                    ),
                ),
                ("professor", models.CharField(blank=True, max_length=255, verbose_name="授课教师")),
                ("credits", models.DecimalField(decimal_places=1, default=0, max_digits=4, verbose_name="学分")),
            ],
            options={
                "verbose_name": "选修课程",
                "verbose_name_plural": "选修课程",
            },
            bases=("electives.offering",),
        ),
        migrations.CreateModel(
            name="ExchangeUniversity",
            fields=[
                (
                    "offering_ptr",
                    models.OneToOneField(
                        auto_created=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        parent_link=True,
                        primary_key=True,
                        serialize=False,
                        to="electives.offering",
                    ),
                ),
                ("country", models.CharField(blank=True, max_length=100, verbose_name="国家/地区")),
                ("city", models.CharField(blank=True, max_length=100, verbose_name="城市")),
                ("language", models.CharField(blank=True, max_length=50, verbose_name="授课语言")),
            ],
            options={
                "verbose_name": "交换院校",
                "verbose_name_plural": "交换院校",
            },
            bases=("electives.offering",),
        ),
        migrations.CreateModel(
            name="Selection",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "待审批"), ("approved", "已通过"), ("rejected", "已驳回")],
                        default="pending",
                        max_length=16,
                        verbose_name="审批状态",
                    ),
                ),
                ("statement_url", models.URLField(blank=True, max_length=500, verbose_name="申请表")),
                ("reviewed_at", models.DateTimeField(blank=True, null=True, verbose_name="审核时间")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="提交时间")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="更新时间")),
                (
                    "pack",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="selections",
                        to="electives.electivepack",
                        verbose_name="选课包",
                    ),
                ),
                (
                    "reviewed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reviewed_selections",
                        to="accounts.managerprofile",
                        verbose_name="审核人",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="selections",
                        to="accounts.studentprofile",
                        verbose_name="学生",
                    ),
                ),
            ],
            options={
                "verbose_name": "学生选择",
                "verbose_name_plural": "学生选择",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["pack", "status"], name="selection_pack_status_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("student", "pack"), name="selection_one_per_student_pack"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SelectionDecisionLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "action",
                    models.CharField(
                        choices=[("approved", "通过"), ("rejected", "驳回"), ("reopened", "重新开放")],
                        max_length=16,
                        verbose_name="操作",
                    ),
                ),
                ("note", models.TextField(blank=True, verbose_name="审核意见")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="时间")),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="decision_logs",
                        to="accounts.managerprofile",
                        verbose_name="执行人",
                    ),
                ),
                (
                    "selection",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="logs",
                        to="electives.selection",
                        verbose_name="学生选择",
                    ),
                ),
            ],
            options={
                "verbose_name": "审批日志",
                "verbose_name_plural": "审批日志",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="SelectionItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveSmallIntegerField(default=0, verbose_name="志愿顺序")),
                (
                    "offering",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.RESTRICT,
                        related_name="selection_items",
                        to="electives.offering",
                        verbose_name="可选项",
                    ),
                ),
                (
                    "selection",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="electives.selection",
                        verbose_name="学生选择",
                    ),
                ),
            ],
            options={
                "verbose_name": "已选项",
                "verbose_name_plural": "已选项",
                "ordering": ["position"],
                "constraints": [
                    models.UniqueConstraint(fields=("selection", "offering"), name="selectionitem_unique_offering"),
                ],
            },
        ),
        migrations.AddField(
            model_name="selection",
            name="offerings",
            field=models.ManyToManyField(
                related_name="selections",
                through="electives.SelectionItem",
                to="electives.offering",
                verbose_name="已选项",
            ),
        ),
    ]
