import pytest
import requests
from django.apps import apps

from rates.cache import CacheStore
from rates.resolver import RateResolver
from rates.services import ExchangeRateProvider


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubResponse:
    def __init__(self, payload, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class StubSession:
    """Stands in for requests.Session; records every call it receives."""

    def __init__(self, payload=None, status_code: int = 200, error: Exception = None):
        self.payload = payload
        self.status_code = status_code
        self.error = error
        self.calls = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        if self.error is not None:
            raise self.error
        return StubResponse(self.payload, self.status_code)

    def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def no_background_tasks(settings):
    settings.RATES_BACKGROUND_TASKS = False


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CacheStore(clock=clock)


@pytest.fixture
def offline_session():
    return StubSession(error=requests.ConnectionError("upstream unreachable"))


@pytest.fixture
def offline_provider(offline_session):
    return ExchangeRateProvider(api_key='', base_url='http://rates.invalid', session=offline_session)


@pytest.fixture
def offline_resolver(cache, offline_provider):
    return RateResolver(cache, offline_provider)


@pytest.fixture
def rates_app(monkeypatch, offline_resolver):
    """Point the views at a resolver whose upstream is unreachable."""
    config = apps.get_app_config('rates')
    monkeypatch.setattr(config, 'resolver', offline_resolver)
    return config
