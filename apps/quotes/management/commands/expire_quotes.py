from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from apps.quotes.services.expiration import QuoteExpirationService


class Command(BaseCommand):
    help = "Expire every overdue pending or counter-offered quote (cron-friendly)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--now",
            type=str,
            help="Treat this ISO-8601 timestamp as the current time",
        )
        parser.add_argument(
            "--batch-size",
            type=int,
            default=None,
            help="Quotes expired per transaction (default: QUOTE_SETTINGS)",
        )

    def handle(self, *args, **options):
        now = None
        if options["now"]:
            now = parse_datetime(options["now"])
            if now is None:
                raise CommandError(f"Invalid --now timestamp: {options['now']}")
            if timezone.is_naive(now):
                now = timezone.make_aware(now)

        expired = QuoteExpirationService.sweep_expired_quotes(
            now=now, batch_size=options["batch_size"]
        )
        self.stdout.write(self.style.SUCCESS(f"Expired {expired} quotes"))
