"""
Admin configuration for accounts app.
"""

from django.contrib import admin

from apps.accounts.models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ["id", "email", "name", "role", "organization", "is_active", "created_at"]
    list_filter = ["role", "is_active", "is_staff"]
    search_fields = ["email", "name", "stytch_member_id"]
    raw_id_fields = ["organization"]
    exclude = ["password", "groups", "user_permissions"]
