from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("email", "display_name", "phone_number", "is_active", "date_joined")
    search_fields = ("email", "display_name", "phone_number")
    list_filter = ("is_active", "is_staff")
    ordering = ("email",)
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Profile", {"fields": ("display_name", "phone_number", "address")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Profile", {"fields": ("email", "display_name")}),
    )
