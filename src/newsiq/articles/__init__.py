"""Article feed and per-user article interactions."""
