"""Command-line interface for Shelf."""
