"""Data types shared by the detector, sample sources and consumers."""

import math
from dataclasses import dataclass, asdict
from typing import Any, Literal, Mapping

from .errors import InvalidSampleError


ActivityType = Literal['idle', 'walking', 'jogging', 'running']
PermissionStatus = Literal['granted', 'denied', 'unavailable']


@dataclass(frozen=True)
class Sample:
    """One 3-axis accelerometer reading (m/s^2) with a monotonic timestamp (ms)."""

    x: float
    y: float
    z: float
    timestamp: float

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> 'Sample':
        """
        Build a sample from a sensor payload.

        Args:
            payload: Mapping with 'x', 'y', 'z' and 'timestamp' keys

        Returns:
            Validated sample

        Raises:
            InvalidSampleError: If a field is missing or not a finite number
        """
        try:
            sample = cls(
                x=payload['x'],
                y=payload['y'],
                z=payload['z'],
                timestamp=payload['timestamp'],
            )
        except (KeyError, TypeError) as e:
            raise InvalidSampleError(f"Malformed sample payload: {payload!r}") from e
        sample.validate()
        return sample

    def validate(self):
        """Raise InvalidSampleError unless every field is a finite number."""
        for name in ('x', 'y', 'z', 'timestamp'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidSampleError(f"Sample field '{name}' is not numeric: {value!r}")
            if not math.isfinite(value):
                raise InvalidSampleError(f"Sample field '{name}' is not finite: {value!r}")


@dataclass(frozen=True)
class StepState:
    """Snapshot of the aggregate step metrics exposed to consumers."""

    steps: int = 0
    distance_meters: float = 0.0
    calories_burned: float = 0.0
    pace_steps_per_minute: float = 0.0
    activity_type: ActivityType = 'idle'

    def to_dict(self) -> dict:
        return asdict(self)
