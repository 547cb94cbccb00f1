import atexit
import logging
import os
import threading

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


class RatesConfig(AppConfig):
    """
    Owns the process-wide cache, provider, resolver and refresher.

    Background work (cache sweep and rate refresh) is not started here, so
    management commands and tests do not spawn threads. ``backend.wsgi``
    starts it when the server loads, and ``BackgroundTasksMiddleware`` calls
    ``start_background_tasks`` on every request. Threads do not survive a
    fork, so the start is tracked per process id: a pre-forking server that
    loads the app in its master (gunicorn ``--preload``) gets fresh threads in
    each worker on that worker's first request.
    """
    name = 'rates'
    verbose_name = 'Exchange rates'

    def ready(self):
        from .cache import CacheStore
        from .refresher import RateRefresher
        from .resolver import RateResolver
        from .services import ExchangeRateProvider

        self.cache = CacheStore()
        self.provider = ExchangeRateProvider(
            api_key=settings.EXCHANGE_API_KEY,
            base_url=settings.EXCHANGE_BASE_URL,
            timeout=settings.EXCHANGE_API_TIMEOUT,
            retries=settings.EXCHANGE_API_RETRIES,
        )
        self.resolver = RateResolver(
            self.cache,
            self.provider,
            latest_ttl=settings.RATES_CACHE_EXPIRATION,
            historical_ttl=settings.RATES_HISTORICAL_CACHE_EXPIRATION,
            max_history_days=settings.RATES_MAX_HISTORY_DAYS,
        )
        self.refresher = RateRefresher(
            self.provider,
            self.cache,
            interval=settings.RATES_UPDATE_INTERVAL,
            ttl=settings.RATES_CACHE_EXPIRATION,
        )
        self._background_pid = None
        self._background_lock = threading.Lock()
        self._atexit_registered = False

    def start_background_tasks(self):
        if not settings.RATES_BACKGROUND_TASKS:
            return
        pid = os.getpid()
        if self._background_pid == pid:
            return
        with self._background_lock:
            if self._background_pid == pid:
                return
            self._background_pid = pid
            self.cache.start_sweeper(settings.RATES_CACHE_SWEEP_INTERVAL)
            self.refresher.start()
            if not self._atexit_registered:
                atexit.register(self.stop_background_tasks)
                self._atexit_registered = True
        logger.info(
            "Started rate refresher (every %ss) and cache sweeper (every %ss) in process %s",
            settings.RATES_UPDATE_INTERVAL,
            settings.RATES_CACHE_SWEEP_INTERVAL,
            pid,
        )

    def stop_background_tasks(self):
        if self._background_pid is None:
            return
        self._background_pid = None
        self.refresher.stop()
        self.cache.stop_sweeper()
        self.provider.close()
