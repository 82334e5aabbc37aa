"""Exceptions raised by the step streaming package."""


class StepStreamingError(Exception):
    """Base class for step streaming errors."""


class InvalidSampleError(StepStreamingError, ValueError):
    """A sample payload is missing fields or carries non-numeric values."""


class SensorPermissionDenied(StepStreamingError):
    """The user refused access to the motion sensor."""


class PersistenceFailure(StepStreamingError):
    """A daily summary could not be written or read."""
