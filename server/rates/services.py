import logging
import math
from datetime import datetime, timezone as dt_timezone
from typing import Dict, Any, Optional

import requests
from django.utils import timezone
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import UpstreamUnavailableError
from .models import ExchangeRate
from .validators import SUPPORTED_CURRENCIES, DATE_FORMAT

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.exchangerate.host"
DEFAULT_TIMEOUT = 15
DEFAULT_RETRIES = 2

# Offline quotes served whenever the upstream API cannot be used.
FALLBACK_RATES: Dict[str, Dict[str, float]] = {
    'USD': {'INR': 83.25, 'EUR': 0.85, 'JPY': 110.50, 'GBP': 0.73},
    'EUR': {'USD': 1.18, 'INR': 98.12, 'JPY': 130.25, 'GBP': 0.86},
    'GBP': {'USD': 1.37, 'INR': 114.05, 'EUR': 1.16, 'JPY': 151.38},
    'INR': {'USD': 0.012, 'EUR': 0.010, 'JPY': 1.33, 'GBP': 0.0088},
    'JPY': {'USD': 0.0090, 'EUR': 0.0077, 'INR': 0.75, 'GBP': 0.0066},
}


def _create_session_with_retries(retries: int = DEFAULT_RETRIES) -> requests.Session:
    """
    Create a requests session with retry logic.
    Only 429/5xx answers are retried; a connect or read timeout goes straight
    to the fallback so one call never waits longer than the timeout.
    """
    session = requests.Session()
    retry_strategy = Retry(
        total=retries,
        connect=0,
        read=0,
        backoff_factor=0.5,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"]
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def fallback_rates(base_currency: str) -> Dict[str, float]:
    return dict(FALLBACK_RATES.get(base_currency, {}))


def fallback_rate(source_currency: str, destination_currency: str) -> float:
    return FALLBACK_RATES.get(source_currency, {}).get(destination_currency, 1.0)


def _is_valid_rate(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


class ExchangeRateProvider:
    """
    Client for an exchangerate.host style API (``/live`` and ``/historical``).

    None of the public methods raise. Network errors, timeouts, non-2xx
    responses and unusable payloads all degrade to ``FALLBACK_RATES`` so the
    service keeps answering without a working upstream.
    """

    def __init__(
        self,
        api_key: str = '',
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip('/')
        self.timeout = timeout
        self.retries = retries
        # Without an injected session every call gets its own, since the
        # provider is shared by request threads and the refresher.
        self.session = session

    def close(self) -> None:
        if self.session is not None:
            self.session.close()

    def get_latest_rate(self, source_currency: str, destination_currency: str) -> ExchangeRate:
        try:
            payload = self._request('live', source_currency, [destination_currency])
            rate = self._quote(payload, source_currency, destination_currency)
            fetched_at = self._timestamp(payload)
        except (requests.RequestException, ValueError, UpstreamUnavailableError) as e:
            logger.warning(
                "Falling back to offline rate for %s->%s: %s",
                source_currency,
                destination_currency,
                e,
            )
            now = timezone.now()
            return ExchangeRate(
                from_currency=source_currency,
                to_currency=destination_currency,
                rate=fallback_rate(source_currency, destination_currency),
                timestamp=now,
                date=now.strftime(DATE_FORMAT),
            )

        return ExchangeRate(
            from_currency=source_currency,
            to_currency=destination_currency,
            rate=rate,
            timestamp=fetched_at,
            date=fetched_at.strftime(DATE_FORMAT),
        )

    def get_historical_rate(self, source_currency: str, destination_currency: str, date: str) -> ExchangeRate:
        try:
            payload = self._request('historical', source_currency, [destination_currency], date=date)
            rate = self._quote(payload, source_currency, destination_currency)
            fetched_at = self._timestamp(payload)
        except (requests.RequestException, ValueError, UpstreamUnavailableError) as e:
            logger.warning(
                "Falling back to offline rate for %s->%s on %s: %s",
                source_currency,
                destination_currency,
                date,
                e,
            )
            rate = fallback_rate(source_currency, destination_currency)
            fetched_at = timezone.now()

        return ExchangeRate(
            from_currency=source_currency,
            to_currency=destination_currency,
            rate=rate,
            timestamp=fetched_at,
            date=date,
        )

    def get_all_latest_rates(self, base_currency: str) -> Dict[str, float]:
        targets = [code for code in SUPPORTED_CURRENCIES if code != base_currency]
        try:
            payload = self._request('live', base_currency, targets)
            rates = {}
            for pair, value in self._quotes(payload).items():
                target = pair[len(base_currency):]
                if pair.startswith(base_currency) and target in targets and _is_valid_rate(value):
                    rates[target] = float(value)
            if not rates:
                raise UpstreamUnavailableError("no usable quotes in response")
            missing = [code for code in targets if code not in rates]
            if missing:
                logger.warning(
                    "Upstream omitted %s for base %s; using offline rates for them",
                    ",".join(missing),
                    base_currency,
                )
                for code in missing:
                    rates[code] = fallback_rate(base_currency, code)
            return rates
        except (requests.RequestException, ValueError, UpstreamUnavailableError) as e:
            logger.warning("Falling back to offline rates for base %s: %s", base_currency, e)
            return fallback_rates(base_currency)

    def _request(self, endpoint: str, source_currency: str, currencies, date: Optional[str] = None) -> Dict[str, Any]:
        params = {}
        if self.api_key:
            params["access_key"] = self.api_key
        if date:
            params["date"] = date
        params["source"] = source_currency
        params["currencies"] = ",".join(currencies)

        session = self.session or _create_session_with_retries(self.retries)
        try:
            resp = session.get(f"{self.base_url}/{endpoint}", params=params, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        finally:
            if session is not self.session:
                session.close()

        if not isinstance(payload, dict):
            raise UpstreamUnavailableError("response body is not a JSON object")
        if payload.get('success') is not True or payload.get('error'):
            error = payload.get('error') or {}
            info = error.get('info') if isinstance(error, dict) else error
            raise UpstreamUnavailableError(f"upstream reported failure: {info or 'unknown error'}")
        return payload

    @staticmethod
    def _quotes(payload: Dict[str, Any]) -> Dict[str, Any]:
        quotes = payload.get('quotes')
        if not isinstance(quotes, dict):
            raise UpstreamUnavailableError("response has no quotes")
        return quotes

    def _quote(self, payload: Dict[str, Any], source_currency: str, destination_currency: str) -> float:
        value = self._quotes(payload).get(f"{source_currency}{destination_currency}")
        if not _is_valid_rate(value):
            raise UpstreamUnavailableError(
                f"quote {source_currency}{destination_currency} missing or invalid"
            )
        return float(value)

    @staticmethod
    def _timestamp(payload: Dict[str, Any]) -> datetime:
        value = payload.get('timestamp')
        if not isinstance(value, int) or isinstance(value, bool):
            raise UpstreamUnavailableError("response has no timestamp")
        try:
            return datetime.fromtimestamp(value, tz=dt_timezone.utc)
        except (OverflowError, OSError):
            raise UpstreamUnavailableError(f"timestamp {value} out of range")
