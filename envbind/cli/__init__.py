"""Command-line interface for envbind."""
