"""Tests for the refresh scheduler lifecycle and result ordering."""

import time

import pytest

from skytrack.ingestion.errors import HttpError, OfflineError
from skytrack.ingestion.scheduler import RefreshScheduler, SchedulerState

from tests.helpers import REGION_A, REGION_B, FakeClient, record, snapshot, wait_for


@pytest.fixture
def make_scheduler(store, client):
    created = []

    def factory(**kwargs):
        kwargs.setdefault('poll_interval', 60)
        kwargs.setdefault('suspend_on_error', False)
        kwargs.setdefault('fetch_on_resume', False)
        kwargs.setdefault('refresh_on_country_change', False)
        scheduler = RefreshScheduler(store, client, **kwargs)
        created.append(scheduler)
        return scheduler

    yield factory

    for scheduler in created:
        scheduler.close(timeout=1)


def test_starts_idle(make_scheduler):
    scheduler = make_scheduler()
    assert scheduler.state is SchedulerState.IDLE
    assert scheduler.active_region is None


def test_start_fetches_immediately(make_scheduler, client, store):
    client.default = snapshot(
        record('a', 'USA', on_ground=True),
        record('b', 'Turkey', on_ground=False),
    )
    scheduler = make_scheduler()

    scheduler.start_watching(REGION_A)

    # is_loading is cleared last, after every derived view has been updated
    assert wait_for(lambda: len(store.flights.value) == 2 and not store.is_loading.value)
    assert client.calls == [REGION_A]
    assert [f.id for f in store.filtered_flights.value] == ['b']
    assert store.available_countries.value == ['Turkey', 'USA']
    assert store.is_loading.value is False
    assert scheduler.state is SchedulerState.WATCHING
    assert scheduler.active_region == REGION_A


def test_polls_on_interval(make_scheduler, client):
    scheduler = make_scheduler(poll_interval=0.05)
    scheduler.start_watching(REGION_A)
    assert wait_for(lambda: client.calls_for(REGION_A) >= 3)


def test_region_change_discards_stale_result(make_scheduler, client, store):
    client.outcomes[REGION_A] = snapshot(record('old', 'USA'))
    client.outcomes[REGION_B] = snapshot(record('new', 'Turkey'))
    client.gate(REGION_A)
    scheduler = make_scheduler()

    scheduler.start_watching(REGION_A)
    assert wait_for(lambda: client.calls_for(REGION_A) == 1)

    scheduler.start_watching(REGION_B)
    assert wait_for(lambda: [f.id for f in store.flights.value] == ['new'])
    assert client.calls_for(REGION_B) == 1

    # region A's response arrives late
    client.release(REGION_A)
    assert wait_for(lambda: scheduler.stats['discarded_count'] == 1)

    assert [f.id for f in store.flights.value] == ['new']
    assert store.available_countries.value == ['Turkey']
    assert scheduler.active_region == REGION_B
    assert client.calls_for(REGION_B) == 1


def test_region_change_while_suspended(make_scheduler, client, store):
    client.outcomes[REGION_A] = snapshot(record('a', 'USA'))
    client.gate(REGION_A)
    scheduler = make_scheduler()

    scheduler.start_watching(REGION_A)
    assert wait_for(lambda: store.is_loading.value is True)

    scheduler.suspend()
    scheduler.start_watching(REGION_B)
    assert store.is_loading.value is False

    client.release(REGION_A)
    assert wait_for(lambda: scheduler.stats['discarded_count'] == 1)

    time.sleep(0.1)
    assert store.is_loading.value is False
    assert store.flights.value == []
    assert scheduler.state is SchedulerState.SUSPENDED
    assert scheduler.active_region == REGION_B
    assert client.calls_for(REGION_B) == 0


def test_explicit_zero_interval_is_kept(make_scheduler):
    scheduler = make_scheduler(poll_interval=0)
    assert scheduler.poll_interval == 0
    assert scheduler.stats['poll_interval'] == 0


def test_stop_cancels_timer(make_scheduler, client, store):
    scheduler = make_scheduler(poll_interval=0.05)
    scheduler.start_watching(REGION_A)
    assert wait_for(lambda: len(client.calls) >= 1)

    scheduler.close(timeout=1)
    calls = len(client.calls)
    time.sleep(0.2)

    assert len(client.calls) == calls
    assert scheduler.state is SchedulerState.IDLE
    assert scheduler.active_region is None
    assert store.is_loading.value is False


def test_stop_discards_in_flight_result(make_scheduler, client, store):
    client.outcomes[REGION_A] = snapshot(record('a', 'USA'))
    client.gate(REGION_A)
    scheduler = make_scheduler()

    scheduler.start_watching(REGION_A)
    assert wait_for(lambda: store.is_loading.value is True)

    scheduler.stop()
    assert store.is_loading.value is False
    client.release(REGION_A)

    assert wait_for(lambda: scheduler.stats['discarded_count'] == 1)
    assert store.flights.value == []


def test_restart_after_stop(make_scheduler, client):
    scheduler = make_scheduler()
    scheduler.start_watching(REGION_A)
    assert wait_for(lambda: client.calls_for(REGION_A) == 1)
    scheduler.stop()

    scheduler.start_watching(REGION_B)
    assert wait_for(lambda: client.calls_for(REGION_B) == 1)
    assert scheduler.state is SchedulerState.WATCHING


def test_suspend_drops_ticks(make_scheduler, client):
    scheduler = make_scheduler(poll_interval=0.05)
    scheduler.start_watching(REGION_A)
    assert wait_for(lambda: len(client.calls) >= 1)

    scheduler.suspend()
    assert scheduler.state is SchedulerState.SUSPENDED
    time.sleep(0.1)
    calls = len(client.calls)
    time.sleep(0.3)

    assert len(client.calls) == calls
    assert scheduler.stats['dropped_ticks'] > 0

    scheduler.resume()
    assert scheduler.state is SchedulerState.WATCHING
    assert wait_for(lambda: len(client.calls) > calls)


def test_suspend_when_idle_is_noop(make_scheduler):
    scheduler = make_scheduler()
    scheduler.suspend()
    assert scheduler.state is SchedulerState.IDLE


def test_resume_without_immediate_fetch(make_scheduler, client):
    scheduler = make_scheduler()
    scheduler.start_watching(REGION_A)
    assert wait_for(lambda: len(client.calls) == 1)

    scheduler.suspend()
    scheduler.resume()
    time.sleep(0.2)

    assert len(client.calls) == 1


def test_resume_with_immediate_fetch(make_scheduler, client):
    scheduler = make_scheduler(fetch_on_resume=True)
    scheduler.start_watching(REGION_A)
    assert wait_for(lambda: len(client.calls) == 1)

    scheduler.suspend()
    scheduler.resume()

    assert wait_for(lambda: len(client.calls) == 2)


def test_suspend_on_error_policy(make_scheduler, client, store):
    client.default = HttpError(500)
    scheduler = make_scheduler(suspend_on_error=True)

    scheduler.start_watching(REGION_A)

    assert wait_for(lambda: scheduler.state is SchedulerState.SUSPENDED)
    assert store.error.value == 'Server error occurred with status code: 500'
    assert scheduler.stats['error_count'] == 1


def test_errors_do_not_suspend_by_default(make_scheduler, client, store):
    client.default = HttpError(500)
    scheduler = make_scheduler(poll_interval=0.05)

    scheduler.start_watching(REGION_A)

    assert wait_for(lambda: scheduler.stats['error_count'] >= 2)
    assert scheduler.state is SchedulerState.WATCHING


def test_offline_uses_cache(make_scheduler, client, store, cache):
    store.on_fetch_succeeded(snapshot(record('x', 'USA'), record('y', 'USA'), record('z', 'Peru')))
    store.flights.accept([])
    client.default = OfflineError()
    scheduler = make_scheduler()

    scheduler.start_watching(REGION_A)

    assert wait_for(lambda: len(store.flights.value) == 3)
    assert store.error.value is None


def test_unexpected_client_exception_surfaces_as_unknown(make_scheduler, client, store):
    client.default = RuntimeError('bug')
    scheduler = make_scheduler()

    scheduler.start_watching(REGION_A)

    assert wait_for(lambda: store.error.value == 'Unknown error occurred')
    assert scheduler.state is SchedulerState.WATCHING


def test_country_change_refreshes_when_enabled(make_scheduler, client, store):
    scheduler = make_scheduler(refresh_on_country_change=True)
    scheduler.start_watching(REGION_A)
    assert wait_for(lambda: len(client.calls) == 1)

    store.set_selected_country('USA')

    assert wait_for(lambda: len(client.calls) == 2)
    assert client.calls == [REGION_A, REGION_A]


def test_country_change_ignored_when_disabled(make_scheduler, client, store):
    scheduler = make_scheduler(refresh_on_country_change=False)
    scheduler.start_watching(REGION_A)
    assert wait_for(lambda: len(client.calls) == 1)

    store.set_selected_country('USA')
    time.sleep(0.2)

    assert len(client.calls) == 1


def test_refresh_when_idle_is_noop(make_scheduler, client):
    scheduler = make_scheduler()
    scheduler.refresh()
    time.sleep(0.05)
    assert client.calls == []


def test_context_manager_stops(store):
    client = FakeClient()
    with RefreshScheduler(store, client, poll_interval=60, refresh_on_country_change=False) as scheduler:
        scheduler.start_watching(REGION_A)
        assert wait_for(lambda: len(client.calls) == 1)
    assert scheduler.state is SchedulerState.IDLE
