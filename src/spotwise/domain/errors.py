"""Error taxonomy for the scheduling and readiness engine."""


class InvalidInput(ValueError):
    """Input rejected before any state change (bad quality, bounds, ids, ...)."""


class InconsistentState(ValueError):
    """Stored SRS values that are out of bounds.

    Raised by strict constructors. Readers that tolerate drift use
    ``SrsState.coerce`` instead, which logs and clamps.
    """
