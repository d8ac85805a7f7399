"""Certgate internals, not a public API."""
