import threading
import time
from datetime import timedelta

import pytest

from rates.cache import CacheStore, latest_rates_key, rate_key
from rates.exceptions import CacheMiss


def test_key_grammar():
    assert latest_rates_key("USD") == "latest_rates_USD"
    assert rate_key("USD", "INR") == "rate_USD_INR_latest"
    assert rate_key("USD", "INR", "2025-08-01") == "rate_USD_INR_2025-08-01"


def test_set_then_get_returns_equal_value(cache):
    value = {"INR": 83.25, "EUR": 0.85}
    cache.set("k", value, timedelta(hours=1))
    assert cache.get("k") == value


def test_get_returns_a_copy(cache):
    value = {"INR": 83.25}
    cache.set("k", value, 3600)

    value["INR"] = 1.0
    first = cache.get("k")
    first["INR"] = 2.0

    assert cache.get("k") == {"INR": 83.25}


def test_missing_key(cache):
    with pytest.raises(CacheMiss):
        cache.get("absent")


def test_expired_entry_is_removed_on_read(cache, clock):
    cache.set("k", "v", timedelta(hours=1))

    clock.advance(3600)
    assert cache.get("k") == "v"

    clock.advance(1)
    with pytest.raises(CacheMiss):
        cache.get("k")
    assert "k" not in cache


def test_set_overwrites_and_resets_ttl(cache, clock):
    cache.set("k", 1, 10)
    clock.advance(8)
    cache.set("k", 2, 10)
    clock.advance(8)
    assert cache.get("k") == 2


def test_delete_and_clear(cache):
    cache.set("a", 1, 60)
    cache.set("b", 2, 60)

    cache.delete("a")
    cache.delete("never-set")
    assert "a" not in cache
    assert len(cache) == 1

    cache.clear()
    assert len(cache) == 0


def test_sweep_evicts_only_expired(cache, clock):
    cache.set("short", 1, 60)
    cache.set("long", 2, 3600)
    clock.advance(120)

    assert cache.sweep() == 1
    assert "short" not in cache
    assert cache.get("long") == 2
    assert cache.sweep() == 0


def test_sweeper_thread_runs_and_stops(clock):
    store = CacheStore(clock=clock)
    store.set("k", 1, 1)
    clock.advance(5)

    store.start_sweeper(interval=0.01)
    sweeper = store._sweeper
    try:
        deadline = time.monotonic() + 2
        while "k" in store and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        store.stop_sweeper()

    assert "k" not in store
    assert not sweeper.is_alive()


def test_concurrent_writers_readers_and_sweeps():
    store = CacheStore()
    errors = []
    start = threading.Barrier(8)

    def writer(worker):
        start.wait()
        for i in range(500):
            store.set(f"rate_{worker}_{i % 20}", {"rate": i, "history": [i] * 3}, 60)
            store.set(f"short_{worker}_{i}", i, 0)

    def reader(worker):
        start.wait()
        for i in range(500):
            try:
                value = store.get(f"rate_{worker}_{i % 20}")
            except CacheMiss:
                continue
            except Exception as e:  # pragma: no cover - reported below
                errors.append(e)
                continue
            if value["history"] != [value["rate"]] * 3:
                errors.append(value)

    def sweeper():
        start.wait()
        for _ in range(200):
            store.sweep()

    threads = [threading.Thread(target=writer, args=(w,)) for w in range(4)]
    threads += [threading.Thread(target=reader, args=(w,)) for w in range(3)]
    threads.append(threading.Thread(target=sweeper))
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(10)

    assert errors == []
    assert not any(thread.is_alive() for thread in threads)
    time.sleep(0.01)
    store.sweep()
    assert len(store) == 4 * 20
    assert store.get("rate_3_19") == {"rate": 499, "history": [499] * 3}
