"""Parameter, result and status records."""
