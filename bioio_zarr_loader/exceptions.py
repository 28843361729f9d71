class ConfigurationError(ValueError):
    """
    Raised when a loader is constructed, or its channel selections are set,
    with values that do not fit the underlying array.
    """
