"""Core abstractions: component lifecycle, registry, plant nodes and loops."""
