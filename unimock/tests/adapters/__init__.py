"""Tests for the test-runner adapters.

These tests exercise annotation-driven injection and the fixtures the
pytest plugin contributes.
"""
