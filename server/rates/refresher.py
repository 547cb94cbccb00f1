import logging
from typing import Iterable, Optional

from .cache import CacheStore, latest_rates_key
from .resolver import LATEST_TTL
from .services import ExchangeRateProvider
from .tasks import PeriodicTask
from .validators import SUPPORTED_CURRENCIES

logger = logging.getLogger(__name__)

UPDATE_INTERVAL_SECONDS = 4 * 60 * 60


class RateRefresher:
    """Keeps the ``latest_rates_<BASE>`` cache entries warm for every base currency."""

    def __init__(
        self,
        provider: ExchangeRateProvider,
        cache: CacheStore,
        interval: float = UPDATE_INTERVAL_SECONDS,
        ttl=LATEST_TTL,
        currencies: Iterable[str] = SUPPORTED_CURRENCIES,
    ):
        self.provider = provider
        self.cache = cache
        self.interval = interval
        self.ttl = ttl
        self.currencies = tuple(currencies)
        self._task: Optional[PeriodicTask] = None

    def refresh_all(self) -> int:
        success_count = 0
        for base_currency in self.currencies:
            try:
                rates = self.provider.get_all_latest_rates(base_currency)
                self.cache.set(latest_rates_key(base_currency), rates, self.ttl)
            except Exception:
                logger.exception("Failed to update rates for base currency %s", base_currency)
                continue
            success_count += 1
            logger.info("Updated rates for base currency %s", base_currency)

        logger.info("Rate refresh completed: %d of %d base currencies", success_count, len(self.currencies))
        return success_count

    def start(self) -> None:
        """Refresh now, then every ``interval`` seconds on a background thread."""
        if self.running:
            return
        self._task = PeriodicTask("rates-refresher", self.refresh_all, self.interval, run_immediately=True)
        self._task.start()

    def stop(self) -> None:
        if self._task is not None:
            self._task.stop()
            self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and self._task.is_alive()
