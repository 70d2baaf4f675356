from django.contrib import admin

from .models import Prize, Reward, Transaction


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "kind", "amount", "description", "date")
    list_filter = ("kind",)
    search_fields = ("user__email", "description")

    # Ledger rows are append-only.
    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Reward)
class RewardAdmin(admin.ModelAdmin):
    list_display = ("user", "points", "level", "updated_at")
    readonly_fields = ("points",)
    search_fields = ("user__email",)


@admin.register(Prize)
class PrizeAdmin(admin.ModelAdmin):
    list_display = ("name", "cost", "is_available")
    list_filter = ("is_available",)
    search_fields = ("name",)
