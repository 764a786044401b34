"""Emulated services."""
