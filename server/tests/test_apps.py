import pytest
from rest_framework.test import APIClient

from backend import settings as project_settings


class RecordingRefresher:
    def __init__(self):
        self.starts = 0
        self.stops = 0

    def start(self):
        self.starts += 1

    def stop(self):
        self.stops += 1


class RecordingCache:
    def __init__(self):
        self.sweeper_starts = []
        self.sweeper_stops = 0

    def start_sweeper(self, interval):
        self.sweeper_starts.append(interval)

    def stop_sweeper(self):
        self.sweeper_stops += 1


@pytest.fixture
def background(monkeypatch, settings, rates_app):
    settings.RATES_BACKGROUND_TASKS = True
    settings.RATES_CACHE_SWEEP_INTERVAL = 42
    refresher, cache = RecordingRefresher(), RecordingCache()
    monkeypatch.setattr(rates_app, 'refresher', refresher)
    monkeypatch.setattr(rates_app, 'cache', cache)
    monkeypatch.setattr(rates_app, 'provider', type('Provider', (), {'close': lambda self: None})())
    monkeypatch.setattr(rates_app, '_background_pid', None)
    monkeypatch.setattr(rates_app, '_atexit_registered', True)
    yield rates_app, refresher, cache
    rates_app._background_pid = None


def test_background_tasks_start_once_per_process(background):
    rates_app, refresher, cache = background

    rates_app.start_background_tasks()
    rates_app.start_background_tasks()

    assert refresher.starts == 1
    assert cache.sweeper_starts == [42]


def test_forked_worker_starts_its_own_tasks(background):
    rates_app, refresher, cache = background
    rates_app.start_background_tasks()

    # A forked child inherits the parent's bookkeeping but none of its threads.
    rates_app._background_pid = -1
    rates_app.start_background_tasks()

    assert refresher.starts == 2
    assert len(cache.sweeper_starts) == 2


def test_first_request_starts_background_tasks(background):
    rates_app, refresher, cache = background

    APIClient().get('/health')
    APIClient().get('/api/v1/currencies')

    assert refresher.starts == 1
    assert cache.sweeper_starts == [42]


def test_background_tasks_can_be_disabled(background, settings):
    rates_app, refresher, _ = background
    settings.RATES_BACKGROUND_TASKS = False

    APIClient().get('/health')

    assert refresher.starts == 0


def test_stop_background_tasks(background):
    rates_app, refresher, cache = background
    rates_app.start_background_tasks()
    rates_app.stop_background_tasks()
    rates_app.stop_background_tasks()

    assert refresher.stops == 1
    assert cache.sweeper_stops == 1


def test_settings_declare_no_model_defaults():
    assert project_settings.DATABASES == {}
    assert not hasattr(project_settings, 'DEFAULT_AUTO_FIELD')
