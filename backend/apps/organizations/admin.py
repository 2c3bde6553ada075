"""
Admin configuration for organizations app.
"""

from django.contrib import admin

from apps.organizations.models import Organization


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ["id", "name", "slug", "stytch_org_id", "onboarding_completed", "is_active", "created_at"]
    list_filter = ["onboarding_completed", "is_active", "courier_connected"]
    search_fields = ["name", "slug", "stytch_org_id"]
    raw_id_fields = ["owner"]
