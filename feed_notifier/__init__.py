"""Detects new items in a JSON feed and notifies each one, at least once."""
