"""Close a quarter from the command line."""
from decimal import Decimal, InvalidOperation

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from quarters.aggregation import get_quarterly_summary
from quarters.closing import build_summary_text, close_quarter
from quarters.exceptions import CloseFailedError, NotFoundError


class Command(BaseCommand):
    help = "Close a quarter: lock its rows, record its figures and carry the remaining cash forward."

    def add_arguments(self, parser):
        parser.add_argument("quarter_id", help="Quarter to close, e.g. q1-2025.")
        parser.add_argument(
            "--withdrawal",
            default="0",
            help="Amount withdrawn from the cash on hand (default: 0).",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only print the quarter summary, change nothing.",
        )

    def handle(self, *args, **options):
        quarter_id = options["quarter_id"]
        try:
            withdrawal = Decimal(options["withdrawal"])
        except InvalidOperation:
            raise CommandError(f"Invalid withdrawal amount: {options['withdrawal']}")

        if options["dry_run"]:
            try:
                summary = async_to_sync(get_quarterly_summary)(quarter_id)
            except (ValueError, NotFoundError) as exc:
                raise CommandError(str(exc))
            self.stdout.write(f"{summary.name} ({summary.status})")
            self.stdout.write(f"  {build_summary_text(summary)}")
            self.stdout.write(f"  Cash on hand: {summary.cash_on_hand}")
            for warning in summary.warnings:
                self.stdout.write(self.style.WARNING(f"  {warning}"))
            return

        try:
            result = async_to_sync(close_quarter)(quarter_id, withdrawal)
        except (ValueError, NotFoundError, CloseFailedError) as exc:
            raise CommandError(str(exc))

        self.stdout.write(self.style.SUCCESS(
            f"Closed {result.quarter_id}: withdrawal {result.withdrawal_amount}, "
            f"remaining {result.remaining_balance}"
        ))
