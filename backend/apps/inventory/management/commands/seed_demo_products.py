"""
Management command to insert the demo product catalogue.

Usage: python manage.py seed_demo_products --org bunga-mawar
"""

from django.core.management.base import BaseCommand, CommandError

from apps.core.exceptions import AppError
from apps.inventory.services import seed_demo_products
from apps.organizations.services import get_organization_for_command


class Command(BaseCommand):
    help = "Insert demo products for an organization (existing SKUs are skipped)"

    def add_arguments(self, parser):
        parser.add_argument("--org", type=str, required=True, help="Organization id or slug")

    def handle(self, *args, **options):
        try:
            org = get_organization_for_command(options["org"])
        except AppError as e:
            raise CommandError(str(e)) from e

        result = seed_demo_products(org)
        self.stdout.write(
            self.style.SUCCESS(
                f"Seeded '{org.slug}': {len(result.inserted)} inserted, {len(result.skipped)} skipped"
            )
        )
        for sku in result.skipped:
            self.stdout.write(f"  skipped {sku}")
