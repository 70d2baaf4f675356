from django.contrib import admin

from .models import CollectedItem, Report


class CollectedItemInline(admin.StackedInline):
    model = CollectedItem
    extra = 0
    can_delete = False
    readonly_fields = ("collector", "collection_date", "verification_result", "reward_points")


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ("id", "category", "item_type", "location", "status", "reporter", "collector", "created_at")
    list_filter = ("status", "category")
    search_fields = ("location", "item_type", "reporter__email")
    raw_id_fields = ("reporter", "collector")
    inlines = [CollectedItemInline]


@admin.register(CollectedItem)
class CollectedItemAdmin(admin.ModelAdmin):
    list_display = ("report", "collector", "reward_points", "collection_date")
    raw_id_fields = ("report", "collector")
