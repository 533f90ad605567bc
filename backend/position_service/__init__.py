"""Storage, import and runtime adapters around the position engine."""
