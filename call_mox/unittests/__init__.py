"""Unit tests for :mod:`call_mox`."""
