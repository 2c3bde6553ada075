"""
Management command to print order statistics for an organization.

Usage: python manage.py order_stats --org bunga-mawar
"""

from django.core.management.base import BaseCommand, CommandError

from apps.core.exceptions import AppError
from apps.orders.services import compute_order_stats
from apps.organizations.services import get_organization_for_command


class Command(BaseCommand):
    help = "Print order counts per status and money totals"

    def add_arguments(self, parser):
        parser.add_argument("--org", type=str, required=True, help="Organization id or slug")

    def handle(self, *args, **options):
        try:
            org = get_organization_for_command(options["org"])
        except AppError as e:
            raise CommandError(str(e)) from e

        stats = compute_order_stats(org)
        self.stdout.write(f"Orders for '{org.slug}': {stats.total_orders}")
        for status, count in stats.by_status.items():
            self.stdout.write(f"  {status}: {count}")
        self.stdout.write(f"Revenue: {stats.total_revenue}")
        self.stdout.write(f"Cost:    {stats.total_cost}")
        self.stdout.write(f"Profit:  {stats.total_profit}")
