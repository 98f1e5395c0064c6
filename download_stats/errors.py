class ReconciliationError(RuntimeError):
    """Base class for failures that must abort a reconciliation run."""


class InvalidGapError(ReconciliationError):
    pass


class NegativeDeltaError(ReconciliationError):
    pass


class PatternUnavailableError(ReconciliationError):
    pass


class UnsupportedStrategyError(ReconciliationError):
    pass
