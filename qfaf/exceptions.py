"""Custom exceptions for the QFAF projector."""


class ProjectionError(Exception):
    """Base exception for projection errors."""


class ConfigurationError(ProjectionError):
    """Raised when a projection cannot run because its configuration is invalid."""


class UnknownStrategyError(ConfigurationError):
    """Raised when a strategy identifier is not in the strategy table."""

    def __init__(self, strategy_id: str):
        self.strategy_id = strategy_id
        super().__init__(f"Unknown strategy: {strategy_id}")


class InvalidProjectionLengthError(ConfigurationError):
    """Raised when the requested projection horizon is not a positive year count."""

    def __init__(self, years: int):
        self.years = years
        super().__init__(f"Projection length must be positive, got {years}")


class SettingsValidationError(ConfigurationError):
    """Raised when settings or profile values are outside their allowed range."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error on '{field}': {message}")


class InputFileError(ProjectionError):
    """Raised when an input file cannot be loaded."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Input error from {source}: {message}")
