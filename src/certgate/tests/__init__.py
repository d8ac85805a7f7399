"""Utilities for running certgate tests."""
