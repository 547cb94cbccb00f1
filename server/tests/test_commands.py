from io import StringIO

from django.core.management import call_command

from rates.refresher import RateRefresher


def test_poll_rates_once_prints_every_base(monkeypatch, rates_app, cache, offline_provider, offline_session):
    monkeypatch.setattr(rates_app, 'provider', offline_provider)
    monkeypatch.setattr(rates_app, 'refresher', RateRefresher(offline_provider, cache))

    out = StringIO()
    call_command('poll_rates', '--once', stdout=out)
    output = out.getvalue()

    assert "USD: EUR=0.85, GBP=0.73, INR=83.25, JPY=110.5" in output
    assert "Completed: 5 successful, 0 errors" in output
    # Refresher warmed the cache, so printing the snapshots cost no extra calls.
    assert len(offline_session.calls) == 5
    assert offline_session.closed
