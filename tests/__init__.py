"""
Safe Plex Reboot Test Suite
---------------------------

This package contains the test suite for the Safe Plex Reboot tool. Shared
fixtures and test doubles live in ``conftest.py``.
"""
