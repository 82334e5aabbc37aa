"""Tests for daily summary stores and the autosaver."""

import asyncio
from datetime import date

import pytest

from step_streaming import (
    AutoSaver,
    DailySummary,
    InMemorySummaryStore,
    ParquetSummaryStore,
    PersistenceFailure,
    StepState,
    summarize_history
)


TODAY = date(2026, 3, 10)


@pytest.fixture(params=['memory', 'parquet'])
def store(request, tmp_path):
    if request.param == 'memory':
        return InMemorySummaryStore()
    return ParquetSummaryStore(tmp_path / "summaries" / "daily.parquet")


def test_upsert_replaces_same_day(store):
    store.upsert(DailySummary("alice", TODAY, 1200, 40.5))
    store.upsert(DailySummary("alice", TODAY, 3400, 95.0))

    assert store.get_history("alice", today=TODAY) == [DailySummary("alice", TODAY, 3400, 95.0)]


def test_history_window_and_order(store):
    for day, steps in [(10, 500), (1, 9000), (4, 7000), (8, 3000)]:
        store.upsert(DailySummary("alice", date(2026, 3, day), steps, steps / 40))
    store.upsert(DailySummary("bob", TODAY, 100, 2.5))

    history = store.get_history("alice", days=7, today=TODAY)

    assert [s.summary_date.day for s in history] == [4, 8, 10]
    assert [s.total_steps for s in history] == [7000, 3000, 500]


def test_empty_history(store):
    assert store.get_history("nobody", today=TODAY) == []


def test_summarize_history():
    summaries = [
        DailySummary("alice", date(2026, 3, 8), 4000, 150.0),
        DailySummary("alice", date(2026, 3, 9), 6001, 210.0),
    ]
    totals = summarize_history(summaries)

    assert totals['days'] == 2
    assert totals['total_steps'] == 10001
    assert totals['average_steps'] == 5000
    assert totals['total_distance_km'] == pytest.approx(10001 * 0.000762)
    assert totals['total_calories'] == pytest.approx(360.0)


def test_summarize_empty_history():
    assert summarize_history([])['average_steps'] == 0


class FailingStore(InMemorySummaryStore):
    def upsert(self, summary):
        raise PersistenceFailure("disk full")


def make_saver(store, user_id="alice", steps=120, calories=4.2):
    state = StepState(steps=steps, calories_burned=calories)
    return AutoSaver(store, user_id, lambda: state, interval=0.01, today=lambda: TODAY)


def test_save_now_writes_today():
    store = InMemorySummaryStore()

    assert make_saver(store).save_now() is True
    assert store.summaries[("alice", TODAY)] == DailySummary("alice", TODAY, 120, 4.2)


def test_save_skipped_without_user_or_steps():
    store = InMemorySummaryStore()

    assert make_saver(store, user_id=None).save_now() is False
    assert make_saver(store, steps=0).save_now() is False
    assert store.summaries == {}


def test_save_failure_is_not_raised():
    assert make_saver(FailingStore()).save_now() is False


@pytest.mark.asyncio
async def test_periodic_save():
    store = InMemorySummaryStore()
    saver = make_saver(store)
    saver.start()
    assert saver.is_running

    await asyncio.sleep(0.05)
    saver.stop()

    assert not saver.is_running
    assert ("alice", TODAY) in store.summaries


@pytest.mark.asyncio
async def test_periodic_save_survives_failures():
    saver = make_saver(FailingStore())
    saver.start()
    await asyncio.sleep(0.05)

    assert saver.is_running
    saver.stop()
