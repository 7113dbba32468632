"""Performance curves, root finding, schedules and fault models."""
