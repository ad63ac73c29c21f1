"""
Error taxonomy for the telemetry pipeline.

None of these are fatal. Each is raised inside a component and caught at
that component's boundary, where it is logged and turned into the
component's failure signal.
"""


class TelemetryError(Exception):
    """Base class for telemetry pipeline errors."""


class SourceUnavailable(TelemetryError):
    """An external source could not be reached or returned a non-success status."""


class MalformedResponse(TelemetryError):
    """An external source answered, but not in the expected format."""


class PropagationFailure(TelemetryError):
    """SGP4 could not produce a state for one time step."""


class DeliveryFailure(TelemetryError):
    """A subscriber's transport rejected or timed out a send."""
