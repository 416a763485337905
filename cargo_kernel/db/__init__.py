"""Database infrastructure for the cargo kernel."""
