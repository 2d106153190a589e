"""Command-line interface for poolbox."""
