"""Daemon services: event fan-out, notification surface, sync scheduling."""
