class ConflictError(ValueError):
    """A record clashes with an existing one (duplicate key, busy slot)."""
