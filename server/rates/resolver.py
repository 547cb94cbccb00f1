import logging
from datetime import timedelta
from typing import List

from django.utils import timezone

from .cache import CacheStore, latest_rates_key, rate_key
from .exceptions import CacheMiss, InvalidDateError, UnsupportedCurrencyError
from .models import (
    ConversionRequest,
    ConversionResult,
    ExchangeRate,
    HistoricalRatesSeries,
    LatestRatesSnapshot,
)
from .services import ExchangeRateProvider
from .validators import (
    DATE_FORMAT,
    MAX_HISTORY_DAYS,
    SUPPORTED_CURRENCIES,
    expand_date_range,
    is_supported_currency,
    validate_date,
)

logger = logging.getLogger(__name__)

LATEST_TTL = timedelta(hours=1)
HISTORICAL_TTL = timedelta(hours=24)


class RateResolver:
    """
    Answers conversion and rate queries, serving from the cache when it can
    and going to the provider on a miss.

    Latest quotes drift, so they are cached for an hour. Published historical
    quotes do not change and are kept for a day.
    """

    def __init__(
        self,
        cache: CacheStore,
        provider: ExchangeRateProvider,
        latest_ttl=LATEST_TTL,
        historical_ttl=HISTORICAL_TTL,
        max_history_days: int = MAX_HISTORY_DAYS,
    ):
        self.cache = cache
        self.provider = provider
        self.latest_ttl = latest_ttl
        self.historical_ttl = historical_ttl
        self.max_history_days = max_history_days

    @staticmethod
    def supported_currencies() -> List[str]:
        return list(SUPPORTED_CURRENCIES)

    def convert(self, request: ConversionRequest) -> ConversionResult:
        self._check_pair(request.from_currency, request.to_currency)

        amount = request.amount or 1.0

        if request.date:
            validate_date(request.date, self.max_history_days)
            rate = self.get_historical_rate(request.from_currency, request.to_currency, request.date)
        else:
            rate = self.get_latest_rate(request.from_currency, request.to_currency)

        return ConversionResult(amount=amount * rate.rate, exchange_rate=rate)

    def get_latest_rates(self, base_currency: str) -> LatestRatesSnapshot:
        if not is_supported_currency(base_currency):
            raise UnsupportedCurrencyError(f"unsupported base currency: {base_currency}")

        key = latest_rates_key(base_currency)
        try:
            rates = self.cache.get(key)
        except CacheMiss:
            rates = self.provider.get_all_latest_rates(base_currency)
            self.cache.set(key, rates, self.latest_ttl)

        # Only the mapping is cached; the snapshot is always stamped now.
        now = timezone.now()
        return LatestRatesSnapshot(
            base_currency=base_currency,
            rates=rates,
            timestamp=now,
            date=now.strftime(DATE_FORMAT),
        )

    def get_historical_rates(self, source_currency: str, destination_currency: str,
                             start_date: str, end_date: str) -> HistoricalRatesSeries:
        self._check_pair(source_currency, destination_currency)

        try:
            validate_date(start_date, self.max_history_days)
        except InvalidDateError as e:
            raise InvalidDateError(f"invalid start date: {e}")
        try:
            validate_date(end_date, self.max_history_days)
        except InvalidDateError as e:
            raise InvalidDateError(f"invalid end date: {e}")

        rates = {}
        for day in expand_date_range(start_date, end_date):
            try:
                rates[day] = self.get_historical_rate(source_currency, destination_currency, day)
            except Exception as e:
                logger.warning(
                    "Failed to get historical rate %s->%s on %s: %s",
                    source_currency,
                    destination_currency,
                    day,
                    e,
                )

        return HistoricalRatesSeries(
            from_currency=source_currency,
            to_currency=destination_currency,
            start_date=start_date,
            end_date=end_date,
            rates=rates,
        )

    def get_latest_rate(self, source_currency: str, destination_currency: str) -> ExchangeRate:
        key = rate_key(source_currency, destination_currency)
        try:
            return self.cache.get(key)
        except CacheMiss:
            pass

        rate = self.provider.get_latest_rate(source_currency, destination_currency)
        self.cache.set(key, rate, self.latest_ttl)
        return rate

    def get_historical_rate(self, source_currency: str, destination_currency: str, date: str) -> ExchangeRate:
        key = rate_key(source_currency, destination_currency, date)
        try:
            return self.cache.get(key)
        except CacheMiss:
            pass

        rate = self.provider.get_historical_rate(source_currency, destination_currency, date)
        self.cache.set(key, rate, self.historical_ttl)
        return rate

    @staticmethod
    def _check_pair(source_currency: str, destination_currency: str) -> None:
        if not is_supported_currency(source_currency) or not is_supported_currency(destination_currency):
            raise UnsupportedCurrencyError(
                f"unsupported currency pair: {source_currency} to {destination_currency}"
            )
