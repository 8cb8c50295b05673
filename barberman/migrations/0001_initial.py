# Generated migration for the Barberman loyalty engine

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Barber",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.SlugField(unique=True, verbose_name="code")),
                ("name", models.CharField(max_length=200, verbose_name="name")),
                ("is_active", models.BooleanField(default=True, verbose_name="active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "barber",
                "verbose_name_plural": "barbers",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Service",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.SlugField(unique=True, verbose_name="code")),
                ("name", models.CharField(max_length=200, verbose_name="name")),
                ("price", models.DecimalField(decimal_places=2, default=0, max_digits=10, verbose_name="price")),
                ("duration_minutes", models.PositiveIntegerField(default=30, verbose_name="duration (minutes)")),
                ("is_active", models.BooleanField(default=True, verbose_name="active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "service",
                "verbose_name_plural": "services",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Reward",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.SlugField(unique=True, verbose_name="code")),
                ("name", models.CharField(max_length=200, verbose_name="name")),
                ("description", models.TextField(blank=True, verbose_name="description")),
                ("visits_required", models.PositiveIntegerField(verbose_name="visits required")),
                (
                    "reward_type",
                    models.CharField(
                        choices=[("free", "Free service"), ("discount", "Discount")],
                        default="free",
                        max_length=20,
                        verbose_name="type",
                    ),
                ),
                (
                    "discount_percentage",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        help_text="Required for discount rewards (1-100)",
                        null=True,
                        verbose_name="discount percentage",
                    ),
                ),
                (
                    "max_redemptions",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Lifetime cap per client (empty = unlimited)",
                        null=True,
                        verbose_name="max redemptions per client",
                    ),
                ),
                (
                    "valid_for_days",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Days to redeem after the milestone is reached (empty = no expiry)",
                        null=True,
                        verbose_name="valid for days",
                    ),
                ),
                ("is_active", models.BooleanField(db_index=True, default=True, verbose_name="active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "applicable_services",
                    models.ManyToManyField(
                        related_name="rewards",
                        to="barberman.service",
                        verbose_name="applicable services",
                    ),
                ),
            ],
            options={
                "verbose_name": "reward",
                "verbose_name_plural": "rewards",
                "ordering": ["visits_required", "name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("visits_required__gte", 1)),
                        name="barberman_reward_visits_required_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("discount_percentage__gte", 1),
                                ("discount_percentage__isnull", False),
                                ("discount_percentage__lte", 100),
                                ("reward_type", "discount"),
                            ),
                            models.Q(("discount_percentage__isnull", True), ("reward_type", "free")),
                            _connector="OR",
                        ),
                        name="barberman_reward_discount_matches_type",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("max_redemptions__isnull", True),
                            ("max_redemptions__gte", 1),
                            _connector="OR",
                        ),
                        name="barberman_reward_max_redemptions_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("valid_for_days__isnull", True),
                            ("valid_for_days__gte", 1),
                            _connector="OR",
                        ),
                        name="barberman_reward_valid_for_days_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Client",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "code",
                    models.CharField(
                        help_text="Unique client code (e.g. CLI-001)",
                        max_length=50,
                        unique=True,
                        verbose_name="code",
                    ),
                ),
                ("uuid", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("first_name", models.CharField(max_length=100, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=100, verbose_name="last name")),
                ("phone", models.CharField(blank=True, db_index=True, max_length=20, verbose_name="phone")),
                ("is_active", models.BooleanField(db_index=True, default=True, verbose_name="account active")),
                (
                    "total_lifetime_visits",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Total visits ever recorded (never decreases)",
                        verbose_name="lifetime visits",
                    ),
                ),
                (
                    "current_progress_visits",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Visits accumulated since the last redemption",
                        verbose_name="progress visits",
                    ),
                ),
                ("rewards_earned", models.PositiveIntegerField(default=0, verbose_name="rewards earned")),
                ("rewards_redeemed", models.PositiveIntegerField(default=0, verbose_name="rewards redeemed")),
                (
                    "keep_reward_goal",
                    models.BooleanField(
                        default=False,
                        help_text="Keep pursuing the same reward after redeeming it",
                        verbose_name="keep reward goal",
                    ),
                ),
                (
                    "loyalty_status",
                    models.CharField(
                        choices=[
                            ("new", "New"),
                            ("active", "Active"),
                            ("milestone_reached", "Milestone reached"),
                            ("inactive", "Inactive"),
                        ],
                        db_index=True,
                        default="new",
                        max_length=20,
                        verbose_name="loyalty status",
                    ),
                ),
                ("last_visit_at", models.DateTimeField(blank=True, null=True, verbose_name="last visit")),
                ("loyalty_joined_at", models.DateTimeField(blank=True, null=True, verbose_name="joined loyalty at")),
                ("version", models.PositiveIntegerField(default=0, verbose_name="version")),
                ("notes", models.TextField(blank=True, verbose_name="notes")),
                ("metadata", models.JSONField(blank=True, default=dict, verbose_name="metadata")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "selected_reward",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="pursuing_clients",
                        to="barberman.reward",
                        verbose_name="selected reward",
                    ),
                ),
            ],
            options={
                "verbose_name": "client",
                "verbose_name_plural": "clients",
                "ordering": ["first_name", "last_name"],
                "indexes": [
                    models.Index(fields=["loyalty_status", "-total_lifetime_visits"], name="barberman_cli_status_idx"),
                    models.Index(fields=["-last_visit_at"], name="barberman_cli_lastvisit_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("rewards_redeemed__lte", models.F("rewards_earned"))),
                        name="barberman_client_redeemed_lte_earned",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Visit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "visited_at",
                    models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name="visited at"),
                ),
                (
                    "visit_number",
                    models.PositiveIntegerField(
                        help_text="Client's lifetime visit count including this visit",
                        verbose_name="visit number",
                    ),
                ),
                ("total_price", models.DecimalField(decimal_places=2, max_digits=10, verbose_name="total price")),
                ("loyalty_points_earned", models.PositiveIntegerField(default=1, verbose_name="loyalty points")),
                ("reward_redeemed", models.BooleanField(default=False, verbose_name="reward redeemed")),
                ("notes", models.TextField(blank=True, verbose_name="notes")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                (
                    "barber",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="visits",
                        to="barberman.barber",
                        verbose_name="barber",
                    ),
                ),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="visits",
                        to="barberman.client",
                        verbose_name="client",
                    ),
                ),
            ],
            options={
                "verbose_name": "visit",
                "verbose_name_plural": "visits",
                "ordering": ["-visited_at"],
                "indexes": [
                    models.Index(fields=["client", "-visited_at"], name="barberman_visit_client_idx"),
                    models.Index(fields=["barber", "-visited_at"], name="barberman_visit_barber_idx"),
                    models.Index(fields=["reward_redeemed", "-visited_at"], name="barberman_visit_redeemed_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="VisitLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField(default=1, verbose_name="quantity")),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=10, verbose_name="unit price")),
                (
                    "service",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="visit_lines",
                        to="barberman.service",
                        verbose_name="service",
                    ),
                ),
                (
                    "visit",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="barberman.visit",
                        verbose_name="visit",
                    ),
                ),
            ],
            options={
                "verbose_name": "visit line",
                "verbose_name_plural": "visit lines",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 1)),
                        name="barberman_visitline_quantity_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RewardRedemption",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reward_name", models.CharField(max_length=200, verbose_name="reward name")),
                (
                    "reward_type",
                    models.CharField(
                        choices=[("free", "Free service"), ("discount", "Discount")],
                        max_length=20,
                        verbose_name="reward type",
                    ),
                ),
                (
                    "discount_percentage",
                    models.PositiveSmallIntegerField(blank=True, null=True, verbose_name="discount percentage"),
                ),
                (
                    "visits_consumed",
                    models.PositiveIntegerField(
                        help_text="Progress visits the client had when redeeming",
                        verbose_name="visits consumed",
                    ),
                ),
                (
                    "redeemed_at",
                    models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name="redeemed at"),
                ),
                ("redeemed_by", models.CharField(blank=True, max_length=100, verbose_name="redeemed by")),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="redemptions",
                        to="barberman.client",
                        verbose_name="client",
                    ),
                ),
                (
                    "reward",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="redemptions",
                        to="barberman.reward",
                        verbose_name="reward",
                    ),
                ),
                (
                    "visit",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="redemption",
                        to="barberman.visit",
                        verbose_name="visit",
                    ),
                ),
            ],
            options={
                "verbose_name": "reward redemption",
                "verbose_name_plural": "reward redemptions",
                "ordering": ["-redeemed_at"],
                "indexes": [
                    models.Index(fields=["client", "reward"], name="barberman_redem_cli_rew_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RewardMilestone",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reached_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="reached at")),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="milestones",
                        to="barberman.client",
                        verbose_name="client",
                    ),
                ),
                (
                    "reward",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="milestones",
                        to="barberman.reward",
                        verbose_name="reward",
                    ),
                ),
            ],
            options={
                "verbose_name": "reward milestone",
                "verbose_name_plural": "reward milestones",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("client", "reward"),
                        name="barberman_unique_milestone_per_client_reward",
                    ),
                ],
            },
        ),
    ]
