"""Daily summary persistence and periodic autosave."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from datetime import date, timedelta
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple
import polars as pl
import structlog

from .config import TrackingConfig
from .errors import PersistenceFailure
from .models import StepState


logger = structlog.get_logger(__name__)

SUMMARY_SCHEMA = {
    'user_id': pl.String,
    'summary_date': pl.Date,
    'total_steps': pl.Int64,
    'total_calories': pl.Float64,
}

# Rough per-step distance used for history totals (km)
HISTORY_KM_PER_STEP = 0.000762


@dataclass(frozen=True)
class DailySummary:
    """Step totals of one user on one day."""

    user_id: str
    summary_date: date
    total_steps: int
    total_calories: float

    @property
    def key(self) -> Tuple[str, date]:
        return self.user_id, self.summary_date


class SummaryStore(ABC):
    """Idempotent store of daily summaries keyed by (user_id, summary_date)."""

    @abstractmethod
    def upsert(self, summary: DailySummary):
        """Insert or replace the summary for its key."""

    @abstractmethod
    def get_history(self, user_id: str, days: int = 7, today: Optional[date] = None) -> List[DailySummary]:
        """Summaries of the last `days` days, oldest first."""


class InMemorySummaryStore(SummaryStore):
    """Summary store kept in a dictionary."""

    def __init__(self):
        self.summaries: Dict[Tuple[str, date], DailySummary] = {}

    def upsert(self, summary: DailySummary):
        self.summaries[summary.key] = summary

    def get_history(self, user_id: str, days: int = 7, today: Optional[date] = None) -> List[DailySummary]:
        start = (today or date.today()) - timedelta(days=days)
        return sorted(
            (s for s in self.summaries.values() if s.user_id == user_id and s.summary_date >= start),
            key=lambda s: s.summary_date,
        )


class ParquetSummaryStore(SummaryStore):
    """Summary store backed by a single parquet file."""

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize the parquet store.

        Args:
            path: Parquet file, created on first upsert
        """
        self.path = Path(path or TrackingConfig().SUMMARY_PATH)

    def _read(self) -> pl.DataFrame:
        if not self.path.exists():
            return pl.DataFrame(schema=SUMMARY_SCHEMA)
        return pl.read_parquet(self.path)

    def upsert(self, summary: DailySummary):
        """
        Insert or replace the summary for its (user_id, summary_date) key.

        Raises:
            PersistenceFailure: If the file cannot be read or written
        """
        try:
            existing = self._read().filter(
                ~(
                    (pl.col('user_id') == summary.user_id)
                    & (pl.col('summary_date') == summary.summary_date)
                )
            )
            row = pl.DataFrame([asdict(summary)], schema=SUMMARY_SCHEMA)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            (
                pl.concat([existing, row])
                .sort(['user_id', 'summary_date'])
                .write_parquet(self.path)
            )
        except (OSError, pl.exceptions.PolarsError) as e:
            raise PersistenceFailure(f"Could not save summary to {self.path}: {e}") from e

    def get_history(self, user_id: str, days: int = 7, today: Optional[date] = None) -> List[DailySummary]:
        """
        Read the summaries of the last `days` days.

        Raises:
            PersistenceFailure: If the file cannot be read
        """
        start = (today or date.today()) - timedelta(days=days)
        try:
            df = (
                self._read()
                .filter((pl.col('user_id') == user_id) & (pl.col('summary_date') >= start))
                .sort('summary_date')
            )
        except (OSError, pl.exceptions.PolarsError) as e:
            raise PersistenceFailure(f"Could not read summaries from {self.path}: {e}") from e
        return [DailySummary(**row) for row in df.iter_rows(named=True)]


def summarize_history(summaries: List[DailySummary]) -> Dict:
    """
    Aggregate a list of daily summaries.

    Args:
        summaries: Daily summaries

    Returns:
        Dictionary with total and average steps, approximate distance (km) and calories
    """
    total_steps = sum(s.total_steps for s in summaries)
    return {
        'days': len(summaries),
        'total_steps': total_steps,
        'average_steps': round(total_steps / len(summaries)) if summaries else 0,
        'total_distance_km': total_steps * HISTORY_KM_PER_STEP,
        'total_calories': sum(s.total_calories for s in summaries),
    }


class AutoSaver:
    """
    Periodically upserts today's summary while tracking.

    Failures are logged and retried on the next tick only.
    """

    def __init__(
        self,
        store: SummaryStore,
        user_id: Optional[str],
        state_provider: Callable[[], StepState],
        interval: Optional[float] = None,
        today: Callable[[], date] = date.today,
    ):
        """
        Initialize the autosaver.

        Args:
            store: Summary store
            user_id: User the summaries belong to; nothing is saved without one
            state_provider: Returns the current step snapshot
            interval: Seconds between saves
            today: Returns the summary date
        """
        self.store = store
        self.user_id = user_id
        self.state_provider = state_provider
        self.interval = interval or TrackingConfig().AUTOSAVE_INTERVAL
        self.today = today
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def save_now(self) -> bool:
        """
        Save the current snapshot.

        Returns:
            True if a summary was written
        """
        state = self.state_provider()
        if not self.user_id or state.steps == 0:
            return False

        summary = DailySummary(
            user_id=self.user_id,
            summary_date=self.today(),
            total_steps=state.steps,
            total_calories=state.calories_burned,
        )
        try:
            self.store.upsert(summary)
        except PersistenceFailure as e:
            logger.warning("autosave_failed", user_id=self.user_id, error=str(e))
            return False

        logger.debug("autosave_completed", user_id=self.user_id, steps=state.steps)
        return True

    def start(self):
        """Start the save timer. Must be called from a running event loop."""
        self.stop()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            self.save_now()
