"""Configuration models, loaders and plant builder."""
