"""Command-line interface for sqlscout."""
