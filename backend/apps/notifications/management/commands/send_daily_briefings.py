"""
Management command to email the daily briefing to every tenant's owners.

Intended for a daily scheduler.
Usage: python manage.py send_daily_briefings
"""

from django.core.management.base import BaseCommand

from apps.notifications.services import send_daily_briefing_email
from apps.organizations.models import Organization


class Command(BaseCommand):
    help = "Email the daily briefing to owners of every active, onboarded organization"

    def add_arguments(self, parser):
        parser.add_argument("--org", type=str, default=None, help="Only this organization slug")

    def handle(self, *args, **options):
        orgs = Organization.objects.filter(is_active=True, onboarding_completed=True)
        if options["org"]:
            orgs = orgs.filter(slug=options["org"].lower())

        sent = failed = 0
        for org in orgs.order_by("id"):
            result = send_daily_briefing_email(org)
            if result.success:
                sent += 1
                self.stdout.write(f"  {org.slug}: sent to {result.notified_count}")
            else:
                failed += 1
                reason = "throttled" if result.throttled else "not sent"
                self.stdout.write(self.style.WARNING(f"  {org.slug}: {reason}"))

        self.stdout.write(self.style.SUCCESS(f"Briefings sent: {sent}, not sent: {failed}"))
