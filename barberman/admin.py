"""Barberman admin.

Loyalty counters are read-only here: they change only through
LoyaltyService (visits, redemptions, goal selection, reset).
"""

from django import forms
from django.contrib import admin, messages
from django.utils.html import format_html

from barberman.exceptions import BarbermanError
from barberman.gates import Gates
from barberman.models import (
    Barber,
    Client,
    LoyaltyStatus,
    Reward,
    RewardMilestone,
    RewardRedemption,
    Service,
    Visit,
    VisitLine,
)


_STATUS_COLORS = {
    LoyaltyStatus.NEW: "gray",
    LoyaltyStatus.ACTIVE: "green",
    LoyaltyStatus.MILESTONE_REACHED: "orange",
    LoyaltyStatus.INACTIVE: "red",
}


# ===========================================
# Client Admin
# ===========================================


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = [
        "code",
        "name",
        "phone",
        "status_badge",
        "total_lifetime_visits",
        "current_progress_visits",
        "selected_reward",
        "is_active",
    ]
    list_filter = ["loyalty_status", "is_active", "selected_reward"]
    search_fields = ["code", "first_name", "last_name", "phone"]
    list_editable = ["is_active"]
    actions = ["reset_loyalty_progress"]
    readonly_fields = [
        "uuid",
        "total_lifetime_visits",
        "current_progress_visits",
        "rewards_earned",
        "rewards_redeemed",
        "selected_reward",
        "loyalty_status",
        "last_visit_at",
        "loyalty_joined_at",
        "version",
        "created_at",
        "updated_at",
    ]

    fieldsets = [
        (
            "Identification",
            {"fields": ["code", "uuid", "first_name", "last_name", "phone"]},
        ),
        (
            "Loyalty",
            {
                "fields": [
                    "loyalty_status",
                    "selected_reward",
                    "keep_reward_goal",
                    "total_lifetime_visits",
                    "current_progress_visits",
                    "rewards_earned",
                    "rewards_redeemed",
                    "last_visit_at",
                    "loyalty_joined_at",
                ]
            },
        ),
        (
            "System",
            {
                "fields": ["is_active", "notes", "metadata", "version", "created_at", "updated_at"],
                "classes": ["collapse"],
            },
        ),
    ]

    def status_badge(self, obj):
        color = _STATUS_COLORS.get(LoyaltyStatus(obj.loyalty_status), "gray")
        return format_html(
            '<span style="color: {};">{}</span>',
            color,
            obj.get_loyalty_status_display(),
        )

    status_badge.short_description = "Status"

    def save_model(self, request, obj, form, change):
        # Only write the edited identity fields; the aggregate stays with the services
        if change:
            if form.changed_data:
                obj.save(update_fields=[*form.changed_data, "updated_at"])
            return
        super().save_model(request, obj, form, change)

    @admin.action(description="Reset loyalty progress")
    def reset_loyalty_progress(self, request, queryset):
        from barberman.service import LoyaltyService

        reset = 0
        for client in queryset:
            try:
                LoyaltyService.reset_progress(client.code)
                reset += 1
            except BarbermanError as e:
                self.message_user(request, f"{client.code}: {e.message}", messages.ERROR)
        self.message_user(request, f"Reset progress of {reset} clients.", messages.SUCCESS)


# ===========================================
# Barber / Service Admin
# ===========================================


@admin.register(Barber)
class BarberAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "is_active", "visit_count"]
    list_filter = ["is_active"]
    search_fields = ["code", "name"]

    def visit_count(self, obj):
        return obj.visits.count()

    visit_count.short_description = "Visits"


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "price", "duration_minutes", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["code", "name"]
    list_editable = ["is_active"]


# ===========================================
# Reward Admin
# ===========================================


class RewardAdminForm(forms.ModelForm):
    """Validates the definition through Gates.reward_definition (R4)."""

    class Meta:
        model = Reward
        fields = "__all__"

    def clean(self):
        cleaned_data = super().clean()
        if self.errors:
            return cleaned_data

        try:
            Gates.reward_definition(
                visits_required=cleaned_data.get("visits_required"),
                reward_type=cleaned_data.get("reward_type"),
                discount_percentage=cleaned_data.get("discount_percentage"),
                applicable_services=cleaned_data.get("applicable_services"),
                max_redemptions=cleaned_data.get("max_redemptions"),
                valid_for_days=cleaned_data.get("valid_for_days"),
            )
        except BarbermanError as e:
            field = e.data.get("field")
            self.add_error(field if field in self.fields else None, e.message)
        return cleaned_data


@admin.register(Reward)
class RewardAdmin(admin.ModelAdmin):
    form = RewardAdminForm
    list_display = [
        "code",
        "name",
        "visits_required",
        "benefit",
        "max_redemptions",
        "valid_for_days",
        "redemption_count",
        "is_active",
    ]
    list_filter = ["reward_type", "is_active"]
    search_fields = ["code", "name"]
    filter_horizontal = ["applicable_services"]
    readonly_fields = ["created_at", "updated_at"]

    fieldsets = [
        (None, {"fields": ["code", "name", "description", "is_active"]}),
        ("Requirement", {"fields": ["visits_required", "max_redemptions", "valid_for_days"]}),
        ("Benefit", {"fields": ["reward_type", "discount_percentage", "applicable_services"]}),
        ("Timestamps", {"fields": ["created_at", "updated_at"], "classes": ["collapse"]}),
    ]

    def benefit(self, obj):
        return obj.benefit_label

    benefit.short_description = "Benefit"

    def redemption_count(self, obj):
        return obj.redemptions.count()

    redemption_count.short_description = "Redeemed"


# ===========================================
# Visit Admin (read-only ledger)
# ===========================================


class VisitLineInline(admin.TabularInline):
    model = VisitLine
    extra = 0
    fields = ["service", "quantity", "unit_price"]
    readonly_fields = ["service", "quantity", "unit_price"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = [
        "visited_at",
        "client_link",
        "barber",
        "visit_number",
        "total_price",
        "redeemed_badge",
    ]
    list_filter = ["reward_redeemed", "barber"]
    search_fields = ["client__code", "client__first_name", "barber__code"]
    date_hierarchy = "visited_at"
    inlines = [VisitLineInline]

    def client_link(self, obj):
        from django.urls import reverse

        url = reverse("admin:barberman_client_change", args=[obj.client_id])
        return format_html('<a href="{}">{}</a>', url, obj.client.code)

    client_link.short_description = "Client"

    def redeemed_badge(self, obj):
        if obj.reward_redeemed:
            return format_html('<span style="color: green;">{}</span>', "Redeemed")
        return format_html('<span style="color: gray;">{}</span>', "-")

    redeemed_badge.short_description = "Reward"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(RewardRedemption)
class RewardRedemptionAdmin(admin.ModelAdmin):
    list_display = ["redeemed_at", "client", "reward_name", "reward_type", "visits_consumed", "redeemed_by"]
    list_filter = ["reward_type", "reward"]
    search_fields = ["client__code", "reward_name", "redeemed_by"]
    raw_id_fields = ["client", "visit"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(RewardMilestone)
class RewardMilestoneAdmin(admin.ModelAdmin):
    list_display = ["client", "reward", "reached_at"]
    list_filter = ["reward"]
    search_fields = ["client__code", "reward__code"]
    readonly_fields = ["client", "reward", "reached_at"]

    def has_add_permission(self, request):
        return False
