"""Snapshot sources and the periodic reporting loop."""
