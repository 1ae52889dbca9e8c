"""Shared helpers for working with pikepdf objects."""
