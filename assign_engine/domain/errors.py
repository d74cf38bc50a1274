"""Error taxonomy of the assignment engine."""


class AssignmentEngineError(Exception):
    """Base class for engine errors."""


class ConfigurationError(AssignmentEngineError):
    """A rule cannot work as configured (e.g. round robin over an empty pool)."""


class StrategyLookupError(AssignmentEngineError, LookupError):
    """An external lookup failed or timed out while resolving a strategy.

    Soft failure: the engine skips the rule and tries the next one.
    """

    def __init__(self, message: str, rule_id: int | None = None):
        super().__init__(message)
        self.rule_id = rule_id


class PersistenceError(AssignmentEngineError):
    """Committing an assignment (or its statistics) failed.

    Fatal for the current invocation: the item must not be treated as assigned.
    """
