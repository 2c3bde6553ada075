"""
Management command to repair a tenant's missing Stytch organization link.

Usage: python manage.py fix_remote_org --org bunga-mawar
"""

from django.core.management.base import BaseCommand, CommandError

from apps.core.exceptions import AppError
from apps.organizations.onboarding import fix_remote_org_link
from apps.organizations.services import get_organization_for_command


class Command(BaseCommand):
    help = "Ensure a Stytch organization exists for a tenant, add its owner and enable login"

    def add_arguments(self, parser):
        parser.add_argument("--org", type=str, required=True, help="Organization id or slug")

    def handle(self, *args, **options):
        try:
            org = get_organization_for_command(options["org"])
            result = fix_remote_org_link(org)
        except AppError as e:
            raise CommandError(str(e)) from e

        if result.already_linked:
            self.stdout.write(
                self.style.WARNING(f"'{org.slug}' is already linked to {result.remote_org_id}")
            )
            return

        self.stdout.write(self.style.SUCCESS(f"Linked '{org.slug}' to {result.remote_org_id}"))
        self.stdout.write(f"  owner_added:   {result.owner_added}")
        self.stdout.write(f"  login_enabled: {result.login_enabled}")
