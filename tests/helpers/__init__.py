"""Shared helpers for behavioural tests."""
