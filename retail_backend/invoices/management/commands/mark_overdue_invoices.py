# invoices/management/commands/mark_overdue_invoices.py

from __future__ import annotations

from datetime import datetime

from django.core.management.base import BaseCommand, CommandError

from invoices.services.receivables import mark_overdue


class Command(BaseCommand):
    help = "Flip open invoices past their due date to OVERDUE (run daily)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--today",
            dest="today",
            help="Evaluate as of this date, YYYY-MM-DD (default: local today)",
        )

    def handle(self, *args, **options):
        today = None
        if options.get("today"):
            try:
                today = datetime.strptime(options["today"], "%Y-%m-%d").date()
            except ValueError as exc:
                raise CommandError("Invalid --today date. Use YYYY-MM-DD") from exc

        updated = mark_overdue(today=today)
        self.stdout.write(self.style.SUCCESS(f"Invoices marked overdue: {updated}"))
