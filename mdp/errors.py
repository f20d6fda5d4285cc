class InvalidArgumentError(ValueError):
    """Raised when a solver entry point is handed a missing or malformed argument."""
