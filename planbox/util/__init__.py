"""Shared helpers for planbox."""
