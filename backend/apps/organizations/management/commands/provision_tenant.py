"""
Management command to provision a tenant by hand.

Usage: python manage.py provision_tenant --email owner@shop.com --name "Ayu" --org-name "Bunga Mawar"
"""

from django.core.management.base import BaseCommand, CommandError

from apps.core.exceptions import AppError
from apps.organizations.onboarding import provision_tenant


class Command(BaseCommand):
    help = "Create an owner user and organization without going through onboarding"

    def add_arguments(self, parser):
        parser.add_argument("--email", type=str, required=True, help="Owner email address")
        parser.add_argument("--name", type=str, default="", help="Owner display name")
        parser.add_argument(
            "--org-name",
            type=str,
            default=None,
            help="Organization name (default: \"<name>'s Business\")",
        )

    def handle(self, *args, **options):
        try:
            result = provision_tenant(
                email=options["email"],
                name=options["name"],
                org_name=options["org_name"],
            )
        except AppError as e:
            raise CommandError(str(e)) from e

        if result.created:
            self.stdout.write(self.style.SUCCESS(f"Provisioned organization '{result.slug}'"))
        else:
            self.stdout.write(self.style.WARNING(f"User already owns organization '{result.slug}'"))
        self.stdout.write(f"  org_id:    {result.org_id}")
        self.stdout.write(f"  user_id:   {result.user_id}")
        self.stdout.write(f"  subdomain: {result.subdomain}")
