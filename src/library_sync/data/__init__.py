"""Cache, typed records and background services."""
