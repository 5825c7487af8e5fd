"""Shelf - schema-driven local record manager."""
