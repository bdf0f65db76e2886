class InvalidArgument(ValueError):
    """Raised when a caller passes a value the engine refuses to clamp."""
