"""Unit tests for the core components.

These tests drive the core directly, with registries created per test
and sample types from tests/fakes/.
"""
