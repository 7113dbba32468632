"""Operating-point runner and CLI."""
