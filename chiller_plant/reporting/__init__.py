"""Diagnostics and result reporting."""
