"""
Management command to delete every order of an organization.

Usage: python manage.py clear_orders --org bunga-mawar --confirm
"""

from django.core.management.base import BaseCommand, CommandError

from apps.core.exceptions import AppError
from apps.orders.services import clear_orders
from apps.organizations.services import get_organization_for_command


class Command(BaseCommand):
    help = "Delete all orders of an organization. Stock is not restored."

    def add_arguments(self, parser):
        parser.add_argument("--org", type=str, required=True, help="Organization id or slug")
        parser.add_argument(
            "--confirm",
            action="store_true",
            help="Required. Confirms that orders should be deleted",
        )

    def handle(self, *args, **options):
        try:
            org = get_organization_for_command(options["org"])
            deleted = clear_orders(org, confirm=options["confirm"])
        except AppError as e:
            raise CommandError(str(e)) from e

        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} orders from '{org.slug}'"))
