import time
from django.apps import apps
from django.conf import settings
from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = (
        "Fetches the latest rates for every supported base currency and prints them. "
        "Useful for checking the upstream API key and connectivity."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            '--interval',
            type=int,
            default=settings.RATES_UPDATE_INTERVAL,
            help='Polling interval in seconds (default: UPDATE_INTERVAL, 14400 = 4 hours)'
        )
        parser.add_argument(
            '--once',
            action='store_true',
            help='Run once and exit'
        )

    def handle(self, *args, **options):
        interval = options['interval']
        run_once = options['once']

        rates_app = apps.get_app_config('rates')
        refresher = rates_app.refresher
        resolver = rates_app.resolver

        self.stdout.write(
            self.style.SUCCESS(
                f"Starting rate poller for {len(refresher.currencies)} base currencies "
                f"against {rates_app.provider.base_url}"
            )
        )

        try:
            while True:
                success_count = refresher.refresh_all()
                error_count = len(refresher.currencies) - success_count

                for base_currency in refresher.currencies:
                    snapshot = resolver.get_latest_rates(base_currency)
                    quotes = ", ".join(
                        f"{code}={rate}" for code, rate in sorted(snapshot.rates.items())
                    )
                    self.stdout.write(f"{base_currency}: {quotes}")

                style = self.style.SUCCESS if error_count == 0 else self.style.WARNING
                self.stdout.write(
                    style(f"\nCompleted: {success_count} successful, {error_count} errors\n")
                )

                if run_once:
                    break

                self.stdout.write(f"Waiting {interval}s until next fetch...\n")
                time.sleep(interval)
        finally:
            rates_app.provider.close()
