"""Data loading and validation utilities for recorded accelerometer sessions."""

import polars as pl
from pathlib import Path
from typing import List, Tuple, Optional

from .errors import InvalidSampleError
from .models import Sample


REQUIRED_COLUMNS = ['timestamp', 'x', 'y', 'z']
SUPPORTED_SUFFIXES = ('.parquet', '.csv')


class AccelDataLoader:
    """Handles loading and validation of recorded accelerometer sessions."""

    def __init__(self, data_dir: Path):
        """
        Initialize the data loader.

        Args:
            data_dir: Directory containing session parquet or CSV files
        """
        self.data_dir = Path(data_dir)

    def get_available_sessions(self) -> list[str]:
        """
        List session names of the recordings in the data directory.

        Returns:
            Sorted list of session names (file stems)
        """
        if not self.data_dir.exists():
            return []
        return sorted({
            f.stem for f in self.data_dir.iterdir()
            if f.suffix in SUPPORTED_SUFFIXES
        })

    def get_file_path(self, session: str) -> Path:
        """
        Get the file path of a session, preferring parquet over CSV.

        Args:
            session: Session name

        Returns:
            Path of the recording (may not exist)
        """
        for suffix in SUPPORTED_SUFFIXES:
            path = self.data_dir / f"{session}{suffix}"
            if path.exists():
                return path
        return self.data_dir / f"{session}.parquet"

    def load_session(self, session: str) -> pl.DataFrame:
        """
        Load the recording of a session.

        Args:
            session: Session name

        Returns:
            DataFrame sorted by timestamp

        Raises:
            FileNotFoundError: If no recording exists for the session
            InvalidSampleError: If required columns are missing
        """
        return self.load_file(self.get_file_path(session))

    def load_file(self, path: Path) -> pl.DataFrame:
        """
        Load a parquet or CSV recording.

        Args:
            path: Recording path

        Returns:
            DataFrame with float timestamp, x, y, z columns sorted by timestamp
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Recording not found: {path}")

        df = pl.read_csv(path) if path.suffix == '.csv' else pl.read_parquet(path)

        valid, error_msg = self.validate_columns(df)
        if not valid:
            raise InvalidSampleError(f"{path.name}: {error_msg}")

        return (
            df.select([pl.col(c).cast(pl.Float64) for c in REQUIRED_COLUMNS])
            .drop_nulls()
            .sort('timestamp')
        )

    def validate_columns(self, df: pl.DataFrame) -> Tuple[bool, Optional[str]]:
        """
        Validate that a recording has the required columns.

        Args:
            df: Recording DataFrame

        Returns:
            Tuple of (is_valid, error_message)
        """
        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            return False, f"Missing columns: {', '.join(missing)}"
        return True, None

    def time_to_sample_index(self, df: pl.DataFrame, start_ms: float) -> int:
        """
        Convert a time in ms to the first sample index at or after it.

        Args:
            df: DataFrame with 'timestamp' column
            start_ms: Time in ms

        Returns:
            Sample index corresponding to the time
        """
        return int(df['timestamp'].search_sorted(start_ms, side='left'))

    def to_samples(self, df: pl.DataFrame, start_index: int = 0) -> List[Sample]:
        """
        Convert recording rows to samples.

        Args:
            df: Recording DataFrame
            start_index: First row to convert

        Returns:
            List of samples in timestamp order
        """
        return [
            Sample(x=row['x'], y=row['y'], z=row['z'], timestamp=row['timestamp'])
            for row in df[start_index:].iter_rows(named=True)
        ]

    def save_session(self, samples: List[Sample], session: str) -> Path:
        """
        Write samples as a parquet recording.

        Args:
            samples: Samples to write
            session: Session name

        Returns:
            Path of the written file
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self.data_dir / f"{session}.parquet"
        df = pl.DataFrame({
            'timestamp': [float(s.timestamp) for s in samples],
            'x': [float(s.x) for s in samples],
            'y': [float(s.y) for s in samples],
            'z': [float(s.z) for s in samples],
        }, schema={c: pl.Float64 for c in REQUIRED_COLUMNS})
        df.write_parquet(path)
        return path
