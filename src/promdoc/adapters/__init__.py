"""Adapters connecting the core to stores and web frameworks."""
