"""Certgate tests."""
